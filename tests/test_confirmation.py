"""Operator gate tests."""

import asyncio

import pytest

from whitelist_sync.models.schemas import ValidationIssue
from whitelist_sync.services.confirmation import (
    INVALID_ADDRESSES_PROMPT,
    auto_approve,
    auto_decline,
    parse_answer,
    prompt_confirmation,
)

ISSUES = [ValidationIssue(index=2, line=4, address="bad", reason="not a 20-byte hex address")]


def scripted(*answers):
    """input() replacement that replays answers and records prompts."""
    prompts = []
    queue = list(answers)

    def fake_input(prompt):
        prompts.append(prompt)
        answer = queue.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    return fake_input, prompts


class TestParseAnswer:

    @pytest.mark.parametrize("answer,expected", [
        ("y", True),
        ("YES", True),
        (" n ", False),
        ("no", False),
        ("", False),
        ("maybe", None),
    ])
    def test_answers(self, answer, expected):
        assert parse_answer(answer) is expected

    def test_empty_uses_default(self):
        assert parse_answer("", default=True) is True


class TestPromptConfirmation:
    """Interactive gate."""

    def test_yes(self):
        fake_input, prompts = scripted("y")
        assert asyncio.run(prompt_confirmation(fake_input)(ISSUES)) is True
        assert INVALID_ADDRESSES_PROMPT in prompts[0]

    def test_enter_means_no(self):
        fake_input, _ = scripted("")
        assert asyncio.run(prompt_confirmation(fake_input)(ISSUES)) is False

    def test_reprompts_on_garbage(self):
        fake_input, prompts = scripted("what", "??", "yes")
        assert asyncio.run(prompt_confirmation(fake_input)(ISSUES)) is True
        assert len(prompts) == 3

    def test_closed_stdin_declines(self):
        fake_input, _ = scripted(EOFError())
        assert asyncio.run(prompt_confirmation(fake_input)(ISSUES)) is False


class TestScriptedGates:

    def test_auto_approve(self):
        assert asyncio.run(auto_approve(ISSUES)) is True

    def test_auto_decline(self):
        assert asyncio.run(auto_decline(ISSUES)) is False
