# ledger.py
# Points and history for successful scans. Both writes are best-effort:
# they go through the WriteQueue and never affect the scan result.
import base64
import logging
from datetime import datetime, timezone

from errors import PersistenceFailure
from models import WasteEvent

logger = logging.getLogger(__name__)

POINTS_PER_SCAN = 10


class GamificationLedger:
    def __init__(self, profiles, write_queue, points_per_scan=POINTS_PER_SCAN,
                 award_anonymous=False, image_store=None):
        self.profiles = profiles
        self.queue = write_queue
        self.points_per_scan = points_per_scan
        self.award_anonymous = award_anonymous
        self.image_store = image_store

    def eligible(self, session):
        if session is None or session.identity is None:
            return False
        return self.award_anonymous or not session.identity.is_anonymous

    def record_scan(self, session, result, request=None):
        """Queue the point grant and the history append for a classified scan.

        Returns True when the writes were scheduled. That is not a success
        signal: failures are only logged by the queue.
        """
        if not self.eligible(session):
            logger.debug("scan not persisted: no eligible session")
            return False

        identity = session.identity
        timestamp = datetime.now(timezone.utc)
        self.queue.submit("grant_points", self.profiles.increment_points,
                          identity, self.points_per_scan)
        self.queue.submit("append_waste_event", self._append_event,
                          identity.uid, result, request, timestamp)
        return True

    def _store_image(self, uid, request):
        if self.image_store is None or request is None:
            return None
        try:
            return self.image_store.put(base64.b64decode(request.data), request.mime_type, uid)
        except PersistenceFailure as e:
            logger.warning("scan image not stored for %s: %s", uid, e)
            return None

    def _append_event(self, uid, result, request, timestamp):
        event = WasteEvent(
            user_id=uid,
            timestamp=timestamp,
            bin_color=result.bin_color,
            eco_fact=result.eco_fact,
            image_ref=self._store_image(uid, request),
        )
        return self.profiles.append_event(event)
