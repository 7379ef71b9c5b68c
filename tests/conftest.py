" generic fixtures "
import logging
from dataclasses import dataclass, field

import pytest

from lukosbot.commands.dispatcher import CommandDispatcher
from lukosbot.commands.source import CommandSource
from lukosbot.message.address import Address, ChatPlatform
from lukosbot.message.inbound import InboundMessage, Sender
from lukosbot.message.outbound import OutboundMessage

TELEGRAM_PRIVATE = Address(ChatPlatform.TELEGRAM, 42)
ONEBOT_GROUP = Address(ChatPlatform.ONEBOT, 1001, group=True)


def pytest_configure():
    "Runs once before all"
    from lukosbot.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


@dataclass
class RecordingSink:
    "Collects what a command source sends"

    messages: list[OutboundMessage] = field(default_factory=list)

    def __call__(self, message):
        self.messages.append(message)

    @property
    def texts(self):
        return [m.text_content() for m in self.messages]

    def last_text(self):
        assert self.messages, "nothing was sent"
        return self.messages[-1].text_content()


@pytest.fixture
def test_logger():
    "Silent logger for configuration objects"
    logger = logging.getLogger("lukosbot.tests")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def source(sink):
    "A source for a private telegram chat, recording replies"
    msg = InboundMessage.text(TELEGRAM_PRIVATE, "/test", Sender(user_id=7, username="alice"))
    return CommandSource.for_inbound(msg, sink)


@pytest.fixture
def dispatcher():
    return CommandDispatcher()
