"""
Policy Info Extractor - Reads policy topics and evidence from entity handles
"""

from typing import Any, Iterable, List

from disapproval_monitor.capabilities import call, field, probe, resolve_first
from disapproval_monitor.models import PolicyInfo


UNSPECIFIED_TOPIC = 'Unspecified Policy Topic'

TOPIC_NAME_STRATEGIES = (call('get_topic'), call('get_id'), field('topic'), field('id'))
EVIDENCE_LIST_STRATEGIES = (call('get_evidences'), field('evidences'))
EVIDENCE_TEXT_STRATEGIES = (field('text'), call('get_text'))


def normalize_strings(values: Iterable[Any]) -> List[str]:
    """Trim, drop empties and dedupe while keeping first-seen order"""
    seen = set()
    result = []

    for value in values:
        text = str(value).strip() if value is not None else ''
        if text and text not in seen:
            seen.add(text)
            result.append(text)

    return result


def extract_policy_info(entity: Any) -> PolicyInfo:
    """Extract policy topics and reasons; never raises"""
    topics_probe = probe(entity, 'get_policy_topics')
    if not topics_probe.ok or not topics_probe.value:
        return PolicyInfo()

    try:
        topics = list(topics_probe.value)
    except TypeError:
        return PolicyInfo()

    topic_names = []
    reasons = []

    for topic in topics:
        topic_names.append(resolve_first(topic, TOPIC_NAME_STRATEGIES, UNSPECIFIED_TOPIC))
        reasons.extend(_evidence_texts(topic))

    return PolicyInfo(
        topics=normalize_strings(topic_names),
        reasons=normalize_strings(reasons)
    )


def _evidence_texts(topic: Any) -> List[str]:
    evidences = resolve_first(topic, EVIDENCE_LIST_STRATEGIES, [])

    try:
        evidences = list(evidences)
    except TypeError:
        return []

    texts = []
    for evidence in evidences:
        if evidence is None:
            continue
        text = resolve_first(evidence, EVIDENCE_TEXT_STRATEGIES)
        if text:
            texts.append(text)
    return texts
