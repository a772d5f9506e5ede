"""
Gmail Mailer - Sends report emails through the Gmail API
"""

import base64
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import Dict, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build


logger = logging.getLogger(__name__)

# If modifying these scopes, delete the token file.
SCOPES = ['https://www.googleapis.com/auth/gmail.send']


def create_message(
    sender: str,
    to: str,
    subject: str,
    text_body: str,
    html_body: str,
    cc: str = ''
) -> Dict[str, str]:
    """Create a message for an email.

    Args:
        sender: From header value, optionally with a display name.
        to: Email address(es) of the receiver.
        subject: The subject of the email message.
        text_body: Plain-text alternative.
        html_body: HTML alternative.
        cc: Optional Cc address(es).

    Returns:
        An object containing a base64url encoded email object.
    """
    message = MIMEMultipart('alternative')
    message['to'] = to
    message['from'] = sender
    message['subject'] = subject
    if cc:
        message['cc'] = cc

    message.attach(MIMEText(text_body, 'plain', 'utf-8'))
    message.attach(MIMEText(html_body, 'html', 'utf-8'))

    raw_msg = base64.urlsafe_b64encode(message.as_bytes())
    return {'raw': raw_msg.decode('utf-8')}


class GmailMailer:
    """Sends mail as the authenticated Gmail user"""

    def __init__(self, credentials_path: str = 'credentials.json', token_path: str = 'token.json', service=None):
        self.credentials_path = credentials_path
        self.token_path = token_path
        self.service = service
        self._sender_address: Optional[str] = None

    # === Authentication ===

    def authenticate(self) -> None:
        """Load cached credentials, refreshing or running the OAuth flow when needed"""
        creds = None
        token_path = Path(self.token_path)

        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                logger.info("Refreshing expired credentials")
                creds.refresh(Request())
            else:
                if not Path(self.credentials_path).exists():
                    raise FileNotFoundError(f"Gmail credentials file not found: {self.credentials_path}")
                flow = InstalledAppFlow.from_client_secrets_file(self.credentials_path, SCOPES)
                creds = flow.run_local_server(port=0)

            # Save the credentials for the next run
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json())

        self.service = build('gmail', 'v1', credentials=creds)
        logger.info("Successfully authenticated with Gmail")

    # === Sending ===

    def sender_address(self) -> str:
        if self._sender_address is None:
            profile = self.service.users().getProfile(userId='me').execute()
            self._sender_address = profile.get('emailAddress', '')
        return self._sender_address

    def send(
        self,
        to: str,
        subject: str,
        text_body: str,
        html_body: str,
        cc: str = '',
        from_name: str = ''
    ) -> Dict:
        """Send a multipart email, returns the sent message resource"""
        if not self.service:
            raise RuntimeError("Not authenticated. Call authenticate() first.")

        address = self.sender_address()
        sender = formataddr((from_name, address)) if from_name else address
        message = create_message(sender, to, subject, text_body, html_body, cc)

        sent = self.service.users().messages().send(userId='me', body=message).execute()
        logger.info(f"Sent '{subject}' to {to} (message id {sent.get('id')})")
        return sent
