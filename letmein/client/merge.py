"""
Sync reconciliation between the local profile set and a server response.

The merge is last-applied-wins keyed by uuid. Local edits are considered
acknowledged once the server answers, local tombstones are dropped since they
were sent, and the server's profiles are applied in response order: a
tombstone removes its uuid, anything else replaces it once it passes
normalization.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Tuple

from letmein.core.errors import ProfileValidationError, SyncError
from letmein.core.models import Client, Profile

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{len(self.added)} added, {len(self.updated)} updated, {len(self.deleted)} deleted"


def select_dirty(client: Client) -> List[Profile]:
    return [p for p in client.profiles if p.modified_at is not None]


def build_sync_request(client: Client, now: datetime) -> Client:
    return Client(
        name=client.name,
        verify=client.verify,
        profiles=[p.model_copy(deep=True) for p in select_dirty(client)],
        modified_at=client.modified_at,
        synced_at=now,
        previous_sync_at=client.previous_sync_at,
    )


def reconcile(local: Client, incoming: Client) -> Tuple[Client, MergeReport]:
    report = MergeReport()

    by_uuid: Dict[str, Profile] = {}
    for elt in local.profiles:
        # deleted records were just uploaded, nothing left to keep
        if elt.is_deleted:
            continue
        p = elt.model_copy(deep=True)
        p.modified_at = None
        by_uuid[p.uuid] = p

    for elt in incoming.profiles:
        if elt.is_deleted:
            removed = by_uuid.pop(elt.uuid, None)
            logger.info("deleting profile: %s", removed if removed is not None else elt)
            report.deleted.append(elt.uuid)
            continue

        p = elt.model_copy(deep=True)
        try:
            p.normalize()
        except ProfileValidationError as e:
            raise SyncError(f"server sent an invalid profile ({elt.uuid}): {e}") from e
        p.modified_at = None
        if p.uuid in by_uuid:
            logger.info("updating profile: %s", p)
            report.updated.append(p.uuid)
        else:
            logger.info("adding profile: %s", p)
            report.added.append(p.uuid)
        by_uuid[p.uuid] = p

    merged = local.model_copy(deep=True)
    merged.profiles = list(by_uuid.values())
    merged.modified_at = None
    merged.synced_at = None
    merged.previous_sync_at = incoming.previous_sync_at
    return merged, report
