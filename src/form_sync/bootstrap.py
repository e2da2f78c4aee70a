"""
bootstrap.py - Full synchronization of an organization.

Resolves the account first; nothing is activated or executed for an
unknown organization. Every active form is then rebuilt from scratch.
"""

import logging
from typing import Callable, Optional

from form_sync.db.store import create_database
from form_sync.errors import AccountNotFoundError
from form_sync.host import AccountSource
from form_sync.model.form import Form
from form_sync.orchestrator import ProgressCallback, SyncOrchestrator

logger = logging.getLogger("form_sync.bootstrap")

ProgressFactory = Callable[[Form], ProgressCallback]


async def sync_account(
    orchestrator: SyncOrchestrator,
    source: AccountSource,
    org: str,
    progress_factory: Optional[ProgressFactory] = None,
) -> dict[str, int]:
    """
    Rebuild every active form of an organization.

    Args:
        orchestrator: Orchestrator bound to the target store
        source: Where accounts are looked up
        org: Organization name (or row id)
        progress_factory: Builds a progress callback for each form

    Returns:
        Form name -> number of records written

    Raises:
        AccountNotFoundError: If org does not resolve to an account
        StatementFailedError: If a create or record statement fails
    """
    account = await source.fetch_account(org)
    if account is None:
        raise AccountNotFoundError(org)

    await orchestrator.activate()

    summary: dict[str, int] = {}
    for form in await account.find_active_forms():
        progress = progress_factory(form) if progress_factory else None
        summary[form.name] = await orchestrator.rebuild_form(form, account, progress)

    logger.info(f"Synced {len(summary)} forms for {account.name}")
    return summary


async def setup_database(path: str) -> str:
    """Create the target database and return its path."""
    created = create_database(path)
    logger.info(f"Created database {created}")
    return str(created)
