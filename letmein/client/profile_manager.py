# letmein/client/profile_manager.py
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from letmein.client.document import DocumentStore
from letmein.client.merge import MergeReport, build_sync_request, reconcile
from letmein.client.sync_service import SyncService
from letmein.core.errors import LetmeinError, ProfileMatchError, ProfileValidationError
from letmein.core.generator import check_master, generate_password, validate_master, verify_code
from letmein.core.models import (
    MAX_LENGTH, MIN_LENGTH, Client, Profile, ProfileOptions, new_profile, new_uuid, utcnow,
)

logger = logging.getLogger(__name__)


class ProfileManager:
    """
    Client operations over the document store.

    Each operation loads the document, checks the master secret against the
    stored verify code, works on the in-memory Client and writes the document
    once at the end. Any exception leaves the file as it was.
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def init_client(self, name: str, master: str) -> Client:
        name = name.strip()
        if not name:
            raise LetmeinError("name is required")
        validate_master(master)
        self.store.ensure_absent()

        client = Client(name=name, verify=verify_code(master), profiles=[])
        self.store.save(client)
        logger.info("initialized client %s", name)
        return client

    def open(self, master: str) -> Tuple[Client, bool]:
        """Load and unlock the client. The flag is True when it needs saving."""
        validate_master(master)
        client = self.store.load()
        if not client.verify:
            # older documents have no verify code yet
            client.verify = verify_code(master)
            client.modified_at = self.clock()
            return client, True
        check_master(master, client.verify)
        return client, False

    def list_profiles(self, master: str, search: str = "") -> List[Tuple[Profile, str]]:
        client, changed = self.open(master)
        result = [(p, generate_password(master, p)) for p in client.matches(search)]
        if changed:
            self.store.save(client)
        return result

    def create_profile(self, master: str, name: str,
                       options: Optional[ProfileOptions] = None) -> Tuple[Profile, str]:
        client, _ = self.open(master)
        now = self.clock()

        matches = client.matches(name.strip())
        if matches:
            raise ProfileMatchError("cannot create new profile that matches existing profile", matches)

        p = new_profile(name, options)
        _check_live(p)
        p.normalize()
        p.uuid = new_uuid()
        p.modified_at = now

        password = generate_password(master, p)
        client.profiles.append(p)
        client.modified_at = now
        self.store.save(client)
        logger.info("profile created: %s", p)
        return p, password

    def update_profile(self, master: str, search: str,
                       options: Optional[ProfileOptions] = None) -> Tuple[Profile, str]:
        client, _ = self.open(master)
        now = self.clock()

        target = self._unique_match(client, search, "update")
        updated = target.model_copy(deep=True)
        if options is not None:
            options.apply_to(updated)
        _check_live(updated)
        updated.normalize()
        updated.modified_at = now

        password = generate_password(master, updated)
        idx = next(i for i, p in enumerate(client.profiles) if p is target)
        client.profiles[idx] = updated
        client.modified_at = now
        self.store.save(client)
        logger.info("profile updated: %s", updated)
        return updated, password

    def delete_profile(self, master: str, search: str) -> str:
        client, _ = self.open(master)
        now = self.clock()

        target = self._unique_match(client, search, "delete")
        summary = str(target)
        target.mark_deleted(now)

        client.modified_at = now
        self.store.save(client)
        logger.info("profile deleted: %s", summary)
        return summary

    def sync(self, master: str, service: SyncService) -> MergeReport:
        client, _ = self.open(master)
        now = self.clock()

        request = build_sync_request(client, now)
        logger.info("syncing %d modified profiles with %s", len(request.profiles), service.server_url)
        updates = service.exchange(request)

        merged, report = reconcile(client, updates)
        self.store.save(merged)
        logger.info("sync complete: %s", report)
        return report

    @staticmethod
    def _unique_match(client: Client, search: str, action: str) -> Profile:
        matches = client.matches(search)
        if len(matches) > 1:
            raise ProfileMatchError(f"cannot {action} profile without a unique match", matches)
        if not matches:
            raise ProfileMatchError("no matching profile found")
        return matches[0]


def _check_live(profile: Profile):
    # a length below the minimum would silently turn the edit into a tombstone
    if profile.is_deleted:
        raise ProfileValidationError(
            f"length must be between {MIN_LENGTH} and {MAX_LENGTH}; use delete to remove a profile",
            field="length")
