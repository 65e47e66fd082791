"""Messaging engine: thread addressing, sends, retention and read state."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from reddoor.core.locks import KeyedLock
from reddoor.core.ports import (
    BlockChecker,
    Clock,
    ContentPolicy,
    MatchChecker,
    NeverBlocked,
    NeverMatched,
    SystemClock,
)
from reddoor.core.results import Err, ErrorCode, err, ok
from reddoor.gate.authorization import authorize, coerce_session
from reddoor.gate.models import (
    USER_PREFIX,
    derive_actor_key,
    is_spot_key,
    normalize_actor_key,
    same_actor,
)
from reddoor.messaging.config import MessagingConfig
from reddoor.messaging.metrics import MessagingMetrics
from reddoor.messaging.models import (
    ChatMessage,
    ChatStateSnapshot,
    ReadCursor,
    ReadReceipt,
    SendMessageInput,
    ThreadState,
    ThreadSummary,
)
from reddoor.messaging.policy import default_content_policy
from reddoor.messaging.rate_limit import SlidingWindowRateLimiter
from reddoor.messaging.threads import (
    THREAD_SEPARATOR,
    get_thread,
    is_spot_thread,
    read_cursor_key,
    thread_key,
)
from reddoor.messaging.validation import InvalidMediaError, sanitize_text, validate_media

logger = logging.getLogger(__name__)


def _is_non_empty(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


class MessagingEngine:
    """
    Stores chat messages per canonical thread and enforces send policy.

    Threads live in a dict keyed by thread id; read cursors in a dict keyed
    by ``<threadId>::<readerKey>``. Sends take the sender lock (rate window)
    and then the thread lock (append order); reads take the thread lock
    only. Cruise messages expire lazily: every read path purges them first.
    """

    def __init__(
        self,
        config: MessagingConfig | None = None,
        clock: Clock | None = None,
        block_checker: BlockChecker | None = None,
        match_checker: MatchChecker | None = None,
        content_policy: ContentPolicy | None = None,
        initial_state: ChatStateSnapshot | None = None,
        on_state_changed: Callable[[ChatStateSnapshot], None] | None = None,
        id_factory: Callable[[], str] | None = None,
        metrics: MessagingMetrics | None = None,
    ):
        """
        Initialize messaging engine.

        Args:
            config: Retention, rate limit and size bounds
            clock: Time source (epoch ms)
            block_checker: Consulted before pairwise sends
            match_checker: Gates Date chat on a mutual match
            content_policy: Returns True for text that must be rejected
            initial_state: Snapshot to hydrate from
            on_state_changed: Best-effort persistence hook
            id_factory: Message id generator (uuid4 by default)
            metrics: Counters sink
        """
        self.config = config or MessagingConfig()
        self.config.validate_config()

        self.clock = clock or SystemClock()
        self.block_checker = block_checker or NeverBlocked()
        self.match_checker = match_checker or NeverMatched()
        self.content_policy = content_policy or default_content_policy
        self.metrics = metrics or MessagingMetrics()
        self._on_state_changed = on_state_changed
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

        self._threads: dict[str, list[ChatMessage]] = {}
        self._read_cursors: dict[str, int] = {}
        # thread id -> time the last message expired, until a read reports it
        self._expired_unreported: dict[str, int] = {}
        self._rate_limiter = SlidingWindowRateLimiter(
            self.config.rate_limit_per_minute, self.config.rate_window_ms
        )
        self._thread_locks = KeyedLock()
        self._sender_locks = KeyedLock()

        if initial_state is not None:
            self._hydrate(initial_state)

    def _hydrate(self, state: ChatStateSnapshot) -> None:
        cap = self.config.max_text_chars
        for thread in state.threads:
            if not thread.messages:
                continue
            messages = [
                m if len(m.text) <= cap else m.model_copy(update={"text": m.text[:cap]})
                for m in thread.messages
            ]
            self._threads[thread.thread_id] = sorted(messages, key=lambda m: m.created_at_ms)
        for cursor in state.read_cursors:
            self._read_cursors[cursor.thread_user_key] = cursor.read_at_ms

        logger.info(
            f"[CHAT] Hydrated {len(self._threads)} threads and "
            f"{len(self._read_cursors)} read cursors"
        )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def _reject(self, code: ErrorCode, message: str, context: dict | None = None) -> Err:
        self.metrics.record_rejection(code.value)
        return err(code, message, context)

    def send_message(self, session: Any, message: SendMessageInput | dict | None):
        """
        Validate and append a message to its thread.

        Args:
            session: Caller session
            message: SendMessageInput or mapping with chatKind/toKey/text/media

        Returns:
            Ok(ChatMessage) or Err(ServiceError)
        """
        if isinstance(message, dict):
            message = SendMessageInput.model_validate(message)
        elif not isinstance(message, SendMessageInput):
            message = SendMessageInput()

        chat_kind = message.chat_kind
        rejection = authorize(session, "chat", chat_kind)
        if rejection is not None:
            self.metrics.record_rejection(rejection.code.value)
            return Err(error=rejection)

        caller = coerce_session(session)
        from_key = derive_actor_key(caller)

        if not _is_non_empty(message.to_key):
            return self._reject(ErrorCode.UNAUTHORIZED_ACTION, "Invalid recipient.")
        to_key = normalize_actor_key(message.to_key)
        if same_actor(to_key, from_key):
            return self._reject(ErrorCode.UNAUTHORIZED_ACTION, "Invalid recipient.")

        if chat_kind == "date":
            if not to_key.startswith(USER_PREFIX) or not to_key[len(USER_PREFIX):].strip():
                return self._reject(ErrorCode.UNAUTHORIZED_ACTION, "Invalid recipient.")
            to_user_id = to_key[len(USER_PREFIX):].strip()
            if not self.match_checker.is_matched(caller.user_id.strip(), to_user_id):
                return self._reject(
                    ErrorCode.UNAUTHORIZED_ACTION, "Match required before Date chat."
                )

        text = sanitize_text(message.text, self.config.max_text_chars)
        if text and self.content_policy(text):
            logger.info(f"[CHAT] Content policy rejected message from {from_key}")
            return self._reject(ErrorCode.UNAUTHORIZED_ACTION, "Message rejected.")

        media = None
        if message.media is not None:
            try:
                media = validate_media(message.media, self.config.media)
            except InvalidMediaError as e:
                logger.debug(f"[CHAT] Invalid media from {from_key}: {e}")
                return self._reject(
                    ErrorCode.UNAUTHORIZED_ACTION, "Invalid media attachment."
                )

        if not text and media is None:
            return self._reject(ErrorCode.UNAUTHORIZED_ACTION, "Invalid message.")

        spot = chat_kind == "cruise" and is_spot_key(to_key)
        if not spot and self.block_checker.is_blocked(from_key, to_key):
            logger.info(f"[CHAT] Blocked send {from_key} -> {to_key}")
            return self._reject(ErrorCode.USER_BLOCKED, "You cannot message this user.")

        thread_id = thread_key(chat_kind, from_key, to_key)
        with self._sender_locks.hold(from_key):
            now = self.clock.now_ms()
            if not self._rate_limiter.try_acquire(from_key, now):
                return self._reject(
                    ErrorCode.RATE_LIMITED,
                    "Rate limit exceeded.",
                    {"limitPerMinute": self.config.rate_limit_per_minute},
                )

            with self._thread_locks.hold(thread_id):
                self._purge_thread(thread_id, now)
                self._expired_unreported.pop(thread_id, None)
                created = ChatMessage(
                    message_id=self._new_id(),
                    chat_id=thread_id,
                    chat_kind=chat_kind,
                    from_key=from_key,
                    to_key=to_key,
                    text=text,
                    media=media,
                    created_at_ms=now,
                    delivered_at_ms=now,
                    expires_at_ms=(
                        now + self.config.cruise_retention_ms
                        if chat_kind == "cruise"
                        else None
                    ),
                )
                self._threads.setdefault(thread_id, []).append(created)

        self.metrics.record_sent(chat_kind, has_media=media is not None)
        self._notify_state_changed()
        return ok(created)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _resolve_counterpart(self, session: Any, chat_kind: Any, other_key: Any):
        """Gate a read and resolve (from_key, to_key) or return the Err."""
        rejection = authorize(session, "chat", chat_kind)
        if rejection is not None:
            return Err(error=rejection)
        from_key = derive_actor_key(coerce_session(session))
        if not _is_non_empty(other_key):
            return err(ErrorCode.UNAUTHORIZED_ACTION, "Invalid recipient.")
        return from_key, normalize_actor_key(other_key)

    def list_messages(self, session: Any, chat_kind: Any, other_key: Any):
        """
        Return the live history of a thread.

        Expired Cruise messages are purged first. When the last messages of a
        thread expire, the next read reports CHAT_EXPIRED once; reads after
        that return an empty list.

        Returns:
            Ok(list[ChatMessage]) or Err(ServiceError)
        """
        resolved = self._resolve_counterpart(session, chat_kind, other_key)
        if isinstance(resolved, Err):
            return resolved
        from_key, to_key = resolved

        thread_id = thread_key(chat_kind, from_key, to_key)
        with self._thread_locks.hold(thread_id):
            now = self.clock.now_ms()
            removed = self._purge_thread(thread_id, now)
            messages = list(self._threads.get(thread_id, ()))
            expired_now = not messages and thread_id in self._expired_unreported
            self._expired_unreported.pop(thread_id, None)
            other_read_at = self._read_cursors.get(read_cursor_key(thread_id, to_key), 0)

        if removed:
            self._notify_state_changed()

        if expired_now:
            self.metrics.record_expiry_notice()
            logger.info(f"[CHAT] Thread {thread_id} expired")
            return err(ErrorCode.CHAT_EXPIRED, "Chat messages have expired.")

        if is_spot_thread(thread_id):
            return ok(messages)

        return ok([self._with_receipt(m, from_key, other_read_at) for m in messages])

    @staticmethod
    def _with_receipt(message: ChatMessage, reader_key: str, other_read_at: int) -> ChatMessage:
        if message.from_key != reader_key:
            return message
        return message.model_copy(
            update={
                "delivered_at_ms": message.delivered_at_ms or message.created_at_ms,
                "read_at_ms": other_read_at if other_read_at >= message.created_at_ms else None,
            }
        )

    def list_threads(self, session: Any, chat_kind: Any):
        """
        List one row per counterpart with the latest message, newest first.

        Spot threads are excluded: they have no single counterpart.
        """
        rejection = authorize(session, "chat", chat_kind)
        if rejection is not None:
            return Err(error=rejection)
        from_key = derive_actor_key(coerce_session(session))

        prefix = f"{chat_kind}{THREAD_SEPARATOR}"
        latest: dict[str, ChatMessage] = {}
        changed = False
        now = self.clock.now_ms()

        for thread_id in list(self._threads.keys()):
            if not thread_id.startswith(prefix) or is_spot_thread(thread_id):
                continue
            with self._thread_locks.hold(thread_id):
                if self._purge_thread(thread_id, now):
                    changed = True
                messages = list(self._threads.get(thread_id, ()))
            if not messages:
                continue

            other_key = self._counterpart(messages, from_key)
            if other_key is None:
                continue
            last = messages[-1]
            current = latest.get(other_key)
            if current is None or last.created_at_ms > current.created_at_ms:
                latest[other_key] = last

        if changed:
            self._notify_state_changed()

        rows = [ThreadSummary(other_key=k, last_message=m) for k, m in latest.items()]
        rows.sort(key=lambda r: r.last_message.created_at_ms, reverse=True)
        return ok(rows)

    @staticmethod
    def _counterpart(messages: list[ChatMessage], actor_key: str) -> str | None:
        for message in reversed(messages):
            if message.from_key == actor_key and message.to_key != actor_key:
                return message.to_key
            if message.to_key == actor_key and message.from_key != actor_key:
                return message.from_key
        return None

    def mark_read(self, session: Any, chat_kind: Any, other_key: Any):
        """Stamp the caller's read cursor for a thread at now."""
        resolved = self._resolve_counterpart(session, chat_kind, other_key)
        if isinstance(resolved, Err):
            return resolved
        from_key, to_key = resolved

        thread_id = thread_key(chat_kind, from_key, to_key)
        with self._thread_locks.hold(thread_id):
            now = self.clock.now_ms()
            self._read_cursors[read_cursor_key(thread_id, from_key)] = now

        self._notify_state_changed()
        return ok(ReadReceipt(read_at_ms=now))

    def get_thread(self, chat_kind: Any, key_a: Any, key_b: Any):
        """Pure addressing helper; raises ValueError on bad arguments."""
        return get_thread(chat_kind, key_a, key_b)

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def _purge_thread(self, thread_id: str, now: int) -> int:
        """Drop expired messages from a thread. Caller holds the thread lock."""
        messages = self._threads.get(thread_id)
        if not messages:
            return 0
        remaining = [m for m in messages if not m.is_expired(now)]
        removed = len(messages) - len(remaining)
        if removed == 0:
            return 0

        if remaining:
            self._threads[thread_id] = remaining
        else:
            del self._threads[thread_id]
            self._expired_unreported[thread_id] = now
        self.metrics.record_purged(removed)
        return removed

    def purge_expired(self) -> int:
        """
        Garbage-collect expired messages across every thread.

        Returns:
            Number of messages removed
        """
        now = self.clock.now_ms()
        removed = 0
        for thread_id in list(self._threads.keys()):
            with self._thread_locks.hold(thread_id):
                removed += self._purge_thread(thread_id, now)

        # Unread expiry notices are kept for one more retention period.
        horizon = now - self.config.cruise_retention_ms
        for thread_id, expired_at in list(self._expired_unreported.items()):
            if expired_at < horizon:
                self._expired_unreported.pop(thread_id, None)

        self._rate_limiter.prune(now)

        if removed:
            logger.info(f"[RETENTION] Purged {removed} expired messages")
            self._notify_state_changed()
        return removed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot_state(self) -> ChatStateSnapshot:
        threads = [
            ThreadState(thread_id=thread_id, messages=list(messages))
            for thread_id, messages in list(self._threads.items())
        ]
        cursors = [
            ReadCursor(thread_user_key=key, read_at_ms=read_at)
            for key, read_at in list(self._read_cursors.items())
        ]
        return ChatStateSnapshot(threads=threads, read_cursors=cursors)

    def _notify_state_changed(self) -> None:
        if self._on_state_changed is None:
            return
        try:
            self._on_state_changed(self.snapshot_state())
        except Exception as e:
            logger.warning(f"[PERSIST] Chat state hook failed: {e}", exc_info=True)
