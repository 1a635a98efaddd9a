"""
Whitelist Sync - Operator Confirmation Gate

When approved rows carry unusable addresses the sheet has upstream data
problems, and an operator has to accept them before anything goes on-chain.

A gate is any async callable taking the validation issues and returning
True (continue) or False (abort the run cleanly).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from whitelist_sync.models.schemas import ValidationIssue

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[Sequence[ValidationIssue]], Awaitable[bool]]

INVALID_ADDRESSES_PROMPT = "There are invalid addresses present. Do you wish to continue?"

_YES = {"y", "yes", "true"}
_NO = {"n", "no", "false"}


def parse_answer(answer: str, default: bool = False) -> Optional[bool]:
    """Map a typed answer to a decision. Empty means default; garbage means None."""
    answer = answer.strip().lower()
    if not answer:
        return default
    if answer in _YES:
        return True
    if answer in _NO:
        return False
    return None


def prompt_confirmation(input_fn: Callable[[str], str] = input) -> ConfirmFn:
    """
    Interactive gate. Defaults to "no" and asks again until it gets an
    answer it understands. Closed stdin counts as "no".
    """
    async def confirm(issues: Sequence[ValidationIssue]) -> bool:
        question = f"{INVALID_ADDRESSES_PROMPT} ({len(issues)} invalid) [y/N] "
        while True:
            try:
                answer = await asyncio.to_thread(input_fn, question)
            except EOFError:
                logger.warning("[GATE] No operator input available, declining")
                return False
            decision = parse_answer(answer)
            if decision is not None:
                return decision

    return confirm


async def auto_approve(issues: Sequence[ValidationIssue]) -> bool:
    logger.warning(f"[GATE] Continuing past {len(issues)} invalid address(es) without prompting")
    return True


async def auto_decline(issues: Sequence[ValidationIssue]) -> bool:
    logger.warning(f"[GATE] Declining run with {len(issues)} invalid address(es)")
    return False
