"""Tests for SMTP reply categorization."""

import pytest

from core.smtp_rfc_handler import ResponseCategory, SMTPResponseAnalyzer


@pytest.fixture
def analyzer():
    return SMTPResponseAnalyzer()


@pytest.mark.parametrize("code, category", [
    (250, ResponseCategory.SUCCESS),
    ("421", ResponseCategory.TEMP_FAIL),
    ("535", ResponseCategory.PERM_FAIL),
    ("299", ResponseCategory.SUCCESS),
    ("499", ResponseCategory.TEMP_FAIL),
    ("599", ResponseCategory.PERM_FAIL),
    ("-1", ResponseCategory.UNKNOWN),
])
def test_categorize_response(analyzer, code, category):
    assert analyzer.categorize_response(code).category is category


@pytest.mark.parametrize("code, message, reason", [
    (535, "5.7.8 bad credentials", "authentication"),
    (550, "No such user", "recipient"),
    (554, "Message rejected as spam", "policy"),
    (552, "Mailbox full", "capacity"),
    (451, "Try later", "unknown"),
])
def test_failure_reason(analyzer, code, message, reason):
    assert analyzer.failure_reason(code, message) == reason


def test_describe_failure(analyzer):
    assert analyzer.describe_failure(535, "5.7.8  bad\ncredentials") == \
        "535 Authentication credentials invalid: 5.7.8 bad credentials"
    assert analyzer.describe_failure("421") == "421 Service not available, closing transmission channel"
