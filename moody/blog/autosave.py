"""
Auto-save

Debounces editor changes and calls a save callback once the editor has been
idle for `delay` seconds. Failed saves are logged and dropped; the next edit
schedules a new attempt.

Only one save runs at a time. A timer callback that starts after cancel()
does nothing.
"""
import functools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "content", "tags")
DEFAULT_DELAY = 5.0


class AutoSaver:
    """
    Usage:

    saver = AutoSaver(lambda data: client.save_draft(blog_id, **data))
    saver.update(title="Hello")     # (re)starts the timer
    ...
    saver.cancel()                  # editor closed
    """

    def __init__(
        self,
        on_save: Callable[[dict], object],
        delay: float = DEFAULT_DELAY,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.on_save = on_save
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._timer_token: Optional[object] = None
        # Bumped by cancel(); callbacks from an older generation are stale
        self._generation = 0
        self._lock = threading.Lock()
        # Held for the whole on_save call
        self._save_lock = threading.RLock()
        self._saving = False
        self._data = {field: "" for field in EDITABLE_FIELDS}
        self._snapshot: Optional[dict] = None
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None

    @property
    def enabled(self) -> bool:
        """Only posts with a title or some content are worth saving."""
        return bool(self._data["title"] or self._data["content"])

    @property
    def dirty(self) -> bool:
        return self._snapshot != self._data

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def mark_saved(self, **fields) -> None:
        """Load fields as already saved, e.g. after opening an existing blog."""
        self._check_fields(fields)
        with self._lock:
            self._data.update({k: v or "" for k, v in fields.items()})
            self._snapshot = dict(self._data)

    def update(self, **fields) -> None:
        """Apply edits and restart the idle timer if there is something to save."""
        self._check_fields(fields)
        with self._lock:
            self._data.update({k: v or "" for k, v in fields.items()})
            self._cancel_timer()
            if self.enabled and self.dirty:
                token = object()
                callback = functools.partial(self._on_timer, token, self._generation)
                self._timer = self._timer_factory(self.delay, callback)
                self._timer_token = token
                self._timer.daemon = True
                self._timer.start()

    def flush(self) -> bool:
        """
        Save pending changes now. Returns True if a save happened.

        Waits for a save already in progress and skips saving when that one
        covered the current changes.
        """
        with self._lock:
            self._cancel_timer()
        return self._save()

    def cancel(self) -> None:
        """Stop any pending save and wait for one already in progress."""
        with self._lock:
            self._cancel_timer()
            self._generation += 1
        with self._save_lock:
            pass

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._timer_token = None

    def _on_timer(self, token: object, generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            if self._timer_token is token:
                self._timer = None
                self._timer_token = None
        return self._save(generation)

    def _save(self, generation: Optional[int] = None) -> bool:
        with self._save_lock:
            with self._lock:
                if self._saving:
                    # Re-entered from on_save on the same thread
                    return False
                if generation is not None and generation != self._generation:
                    return False
                if not (self.enabled and self.dirty):
                    return False
                data = dict(self._data)
                self._saving = True

            try:
                self.on_save(data)
            except Exception as e:
                self.last_error = e
                logger.error(f"Auto-save failed: {e}", exc_info=True)
                return False
            finally:
                with self._lock:
                    self._saving = False

            with self._lock:
                self._snapshot = data
                self.last_saved_at = datetime.now(timezone.utc)
                self.last_error = None
        logger.info("Draft automatically saved")
        return True

    @staticmethod
    def _check_fields(fields: dict) -> None:
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown editor fields: {', '.join(sorted(unknown))}")
