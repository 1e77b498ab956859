# SMTP reply code categorization based on RFC 5321
# Used to turn transport failures into readable delivery diagnostics

from dataclasses import dataclass
from typing import Dict, Union
from enum import Enum


class ResponseCategory(Enum):
    """SMTP Response Categories based on RFC 5321"""
    SUCCESS = "success"
    TEMP_FAIL = "temp_fail"
    PERM_FAIL = "perm_fail"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SMTPResponseCode:
    """RFC 5321 reply code definition"""
    code: str
    category: ResponseCategory
    description: str


# Reply codes a transactional sender runs into in practice
SMTP_CODES: Dict[str, SMTPResponseCode] = {
    # 2xx Success codes (RFC 5321 Section 4.2.1)
    '220': SMTPResponseCode('220', ResponseCategory.SUCCESS, 'Service ready'),
    '221': SMTPResponseCode('221', ResponseCategory.SUCCESS, 'Service closing transmission channel'),
    '235': SMTPResponseCode('235', ResponseCategory.SUCCESS, 'Authentication succeeded'),
    '250': SMTPResponseCode('250', ResponseCategory.SUCCESS, 'Requested mail action okay, completed'),
    '251': SMTPResponseCode('251', ResponseCategory.SUCCESS, 'User not local; will forward to path'),

    # 3xx Intermediate codes
    '334': SMTPResponseCode('334', ResponseCategory.SUCCESS, 'Server challenge'),
    '354': SMTPResponseCode('354', ResponseCategory.SUCCESS, 'Start mail input; end with <CRLF>.<CRLF>'),

    # 4xx Temporary failure codes
    '421': SMTPResponseCode('421', ResponseCategory.TEMP_FAIL,
                            'Service not available, closing transmission channel'),
    '432': SMTPResponseCode('432', ResponseCategory.TEMP_FAIL,
                            'A password transition is needed'),
    '450': SMTPResponseCode('450', ResponseCategory.TEMP_FAIL,
                            'Mailbox unavailable (busy or temporarily blocked)'),
    '451': SMTPResponseCode('451', ResponseCategory.TEMP_FAIL,
                            'Local error in processing; try again later'),
    '452': SMTPResponseCode('452', ResponseCategory.TEMP_FAIL, 'Insufficient system storage'),
    '454': SMTPResponseCode('454', ResponseCategory.TEMP_FAIL,
                            'Temporary authentication failure'),

    # 5xx Permanent failure codes
    '500': SMTPResponseCode('500', ResponseCategory.PERM_FAIL, 'Syntax error, command unrecognized'),
    '501': SMTPResponseCode('501', ResponseCategory.PERM_FAIL, 'Syntax error in parameters or arguments'),
    '502': SMTPResponseCode('502', ResponseCategory.PERM_FAIL, 'Command not implemented'),
    '503': SMTPResponseCode('503', ResponseCategory.PERM_FAIL, 'Bad sequence of commands'),
    '530': SMTPResponseCode('530', ResponseCategory.PERM_FAIL, 'Authentication required'),
    '534': SMTPResponseCode('534', ResponseCategory.PERM_FAIL, 'Authentication mechanism is too weak'),
    '535': SMTPResponseCode('535', ResponseCategory.PERM_FAIL, 'Authentication credentials invalid'),
    '538': SMTPResponseCode('538', ResponseCategory.PERM_FAIL,
                            'Encryption required for requested authentication mechanism'),
    '550': SMTPResponseCode('550', ResponseCategory.PERM_FAIL,
                            'Mailbox unavailable (not found, access denied)'),
    '551': SMTPResponseCode('551', ResponseCategory.PERM_FAIL, 'User not local; please try alternate path'),
    '552': SMTPResponseCode('552', ResponseCategory.PERM_FAIL, 'Exceeded storage allocation'),
    '553': SMTPResponseCode('553', ResponseCategory.PERM_FAIL,
                            'Mailbox name not allowed (invalid address syntax)'),
    '554': SMTPResponseCode('554', ResponseCategory.PERM_FAIL,
                            'Transaction failed (general failure or policy violation)'),
}


class SMTPResponseAnalyzer:
    """SMTP reply analysis for delivery diagnostics"""

    def categorize_response(self, response_code: Union[str, int]) -> SMTPResponseCode:
        """
        Categorize SMTP reply code according to RFC 5321
        """
        response_code = str(response_code)
        code_info = SMTP_CODES.get(response_code)

        if code_info:
            return code_info

        # Fallback categorization for unknown codes
        if response_code.startswith(('2', '3')):
            return SMTPResponseCode(response_code, ResponseCategory.SUCCESS, 'Unknown success code')
        elif response_code.startswith('4'):
            return SMTPResponseCode(response_code, ResponseCategory.TEMP_FAIL, 'Unknown temporary failure')
        elif response_code.startswith('5'):
            return SMTPResponseCode(response_code, ResponseCategory.PERM_FAIL, 'Unknown permanent failure')
        else:
            return SMTPResponseCode(response_code, ResponseCategory.UNKNOWN, 'Invalid response code format')

    def failure_reason(self, response_code: Union[str, int], message: str) -> str:
        """
        Short reason keyword for a failed reply: authentication, recipient,
        policy, capacity or unknown
        """
        code = str(response_code)
        message_lower = (message or '').lower()

        if code in ('530', '534', '535', '538', '454', '432') or any(
                keyword in message_lower for keyword in ['auth', 'login', 'credential', 'password']):
            return 'authentication'
        if code in ('550', '551', '553') or any(
                keyword in message_lower for keyword in ['not found', 'unknown user', 'does not exist']):
            return 'recipient'
        if any(keyword in message_lower for keyword in ['spam', 'blocked', 'policy', 'denied', 'reputation']):
            return 'policy'
        if code in ('452', '552') or any(keyword in message_lower for keyword in ['quota', 'full', 'storage']):
            return 'capacity'
        return 'unknown'

    def describe_failure(self, response_code: Union[str, int], message: str = '') -> str:
        """
        Diagnostic line kept with a failed delivery attempt,
        e.g. ``535 Authentication credentials invalid: <server text>``
        """
        code_info = self.categorize_response(response_code)
        message = ' '.join((message or '').split())
        if message:
            return f"{code_info.code} {code_info.description}: {message}"
        return f"{code_info.code} {code_info.description}"
