"""Plugin hook bus.

Plugins register transform callbacks under a hook name. Firing a hook passes
the payload through every callback in registration order; each callback
returns the payload for the next one. Callbacks may be plain functions or
coroutines.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

HookPayload = dict[str, Any]
HookCallback = Callable[[HookPayload], HookPayload | Awaitable[HookPayload] | Any]

HOOK_TOPICS_GET = "filter:topics.get"
HOOK_TOPIC_GET = "filter:topic.get"
HOOK_TOPIC_THREAD_TOOLS = "filter:topic.thread_tools"
HOOK_TOPIC_SEARCH = "filter:topic.search"
HOOK_POSTS_RECENT = "filter:posts.getRecentPosts"

# Keys every payload of a known hook must keep carrying.
HOOK_PAYLOAD_KEYS: dict[str, frozenset[str]] = {
    HOOK_TOPICS_GET: frozenset({"topics", "uid"}),
    HOOK_TOPIC_GET: frozenset({"topic", "uid"}),
    HOOK_TOPIC_THREAD_TOOLS: frozenset({"topic", "uid", "tools"}),
    HOOK_POSTS_RECENT: frozenset({"posts", "uid"}),
}

# Hooks whose callbacks may answer with a bare list of results.
LIST_RESULT_HOOKS = frozenset({HOOK_TOPIC_SEARCH})


class HookBus:
    """Ordered middleware chain of payload transforms keyed by hook name."""

    def __init__(self) -> None:
        self._callbacks: dict[str, list[HookCallback]] = defaultdict(list)

    def register(self, hook: str, callback: HookCallback) -> None:
        """Append ``callback`` to the chain of ``hook``."""
        self._callbacks[hook].append(callback)

    def unregister(self, hook: str, callback: HookCallback) -> None:
        """Remove a previously registered callback; unknown callbacks are ignored."""
        chain = self._callbacks.get(hook, [])
        if callback in chain:
            chain.remove(callback)

    def has_listeners(self, hook: str) -> bool:
        """Return True if at least one callback is registered for ``hook``."""
        return bool(self._callbacks.get(hook))

    async def fire(self, hook: str, payload: Any) -> Any:
        """Run ``payload`` through the callbacks of ``hook`` and return the result.

        A callback result that is not a mapping, or that drops a key the hook
        is known to carry, is discarded and the chain continues with the
        previous payload. Exceptions raised by callbacks propagate.
        """
        required = HOOK_PAYLOAD_KEYS.get(hook, frozenset())
        current = payload
        for callback in list(self._callbacks.get(hook, [])):
            result = callback(current)
            if inspect.isawaitable(result):
                result = await result
            if isinstance(payload, Mapping):
                if hook in LIST_RESULT_HOOKS and isinstance(result, list):
                    current = result
                    continue
                if not isinstance(result, Mapping):
                    logger.warning(
                        "Hook %s callback %r returned %s; keeping previous payload",
                        hook,
                        callback,
                        type(result).__name__,
                    )
                    continue
                missing = required - result.keys()
                if missing:
                    logger.warning(
                        "Hook %s callback %r dropped keys %s; keeping previous payload",
                        hook,
                        callback,
                        sorted(missing),
                    )
                    continue
            current = result
        return current
