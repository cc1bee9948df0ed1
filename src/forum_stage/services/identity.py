"""Identity masking for anonymous topics and posts.

An anonymous item shows its real author only to staff and to the author.
Everyone else sees a synthetic "Anonymous <Adjective> <Animal>" user. The
synthetic name is derived from the ``(uid, tid)`` pair, so every post of one
hidden author inside one topic carries the same name for every viewer, while
the same author gets unrelated names in different topics.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from forum_stage.core.settings import Settings
from forum_stage.utils.flags import parse_int_flag, same_uid

logger = logging.getLogger(__name__)

FALLBACK_ADJECTIVES: tuple[str, ...] = (
    "Swift", "Brave", "Clever", "Noble", "Fierce",
    "Gentle", "Mighty", "Wise", "Bold", "Calm",
    "Quick", "Strong", "Silent", "Bright", "Dark",
    "Golden", "Silver", "Crimson", "Azure", "Emerald",
)
FALLBACK_ANIMALS: tuple[str, ...] = (
    "Fox", "Panda", "Tiger", "Owl", "Dolphin",
    "Hedgehog", "Falcon", "Penguin", "Wolf", "Koala",
    "Rabbit", "Eagle", "Lion", "Bear", "Giraffe",
    "Zebra", "Cheetah", "Leopard", "Kangaroo", "Elephant",
    "Phoenix", "Dragon", "Unicorn", "Griffin", "Hydra",
)

NAME_HASH_BASE = 31
NAME_HASH_MODULUS = 1_000_000


@dataclass(frozen=True)
class AnonymousWords:
    """Word lists the synthetic names are built from."""

    adjectives: tuple[str, ...]
    animals: tuple[str, ...]

    @classmethod
    def fallback(cls) -> AnonymousWords:
        """Return the built-in lists."""
        return cls(FALLBACK_ADJECTIVES, FALLBACK_ANIMALS)

    @classmethod
    def load(cls, path: str | Path | None = None) -> AnonymousWords:
        """Load the lists from a JSON file with ``adjectives`` and ``animals`` keys.

        ``path`` defaults to the list packaged with forum_stage. A missing or
        malformed file, or an empty list, yields the built-in lists.
        """
        try:
            if path is None:
                raw = resources.files("forum_stage.data").joinpath("animals.json").read_text(
                    encoding="utf-8"
                )
            else:
                raw = Path(path).read_text(encoding="utf-8")
            data = json.loads(raw)
        except (OSError, ValueError) as exc:
            logger.warning("Anonymous word list unavailable (%s); using built-in list", exc)
            return cls.fallback()

        if not isinstance(data, Mapping):
            logger.warning("Anonymous word list is not an object; using built-in list")
            return cls.fallback()
        adjectives = tuple(w for w in data.get("adjectives") or [] if isinstance(w, str) and w)
        animals = tuple(w for w in data.get("animals") or [] if isinstance(w, str) and w)
        if not adjectives or not animals:
            logger.warning("Anonymous word list is empty; using built-in list")
            return cls.fallback()
        return cls(adjectives, animals)


@lru_cache(maxsize=8)
def _cached_words(path: str | None) -> AnonymousWords:
    return AnonymousWords.load(path)


def get_anonymous_words(settings: Settings) -> AnonymousWords:
    """Return the word lists configured by ``settings``, loading them once per path."""
    return _cached_words(settings.anonymous_words_file)


def name_hash(uid: Any, tid: Any) -> int:
    """Rolling base-31 hash of ``"<uid>_<tid>"`` kept below one million."""
    value = 0
    for ch in f"{uid}_{tid}":
        value = (value * NAME_HASH_BASE + ord(ch)) % NAME_HASH_MODULUS
    return value


def generate_anonymous_name(uid: Any, tid: Any, words: AnonymousWords) -> str:
    """Return the stable synthetic name of author ``uid`` inside topic ``tid``.

    Raises:
        ValueError: If ``uid`` or ``tid`` is missing.
    """
    if not uid or not tid:
        raise ValueError("a stable name needs both uid and tid")
    value = name_hash(uid, tid)
    adjective = words.adjectives[abs(value) % len(words.adjectives)]
    animal = words.animals[abs(value // len(words.adjectives)) % len(words.animals)]
    return f"Anonymous {adjective} {animal}"


def random_anonymous_name(words: AnonymousWords, rng: random.Random | None = None) -> str:
    """Return a synthetic name picked at random.

    Non-deterministic: only for contexts that have no ``(uid, tid)`` key.
    """
    chooser = rng or random
    return f"Anonymous {chooser.choice(words.adjectives)} {chooser.choice(words.animals)}"


def anonymous_name_for(uid: Any, tid: Any, words: AnonymousWords) -> str:
    """Stable name when both keys are present, otherwise a random one."""
    if uid and tid:
        return generate_anonymous_name(uid, tid, words)
    logger.debug("No stable key for anonymous name (uid=%r, tid=%r); picking at random", uid, tid)
    return random_anonymous_name(words)


def anonymous_user(name: str, avatar_url: str) -> dict[str, Any]:
    """Build the synthetic user record shown in place of a hidden author."""
    return {
        "uid": 0,
        "username": name,
        "userslug": "",
        "picture": avatar_url,
        "status": "offline",
        "displayname": name,
        "fullname": None,
        "reputation": 0,
        "postcount": 0,
        "signature": "",
        "banned": 0,
    }


def should_mask(item: Mapping[str, Any], viewer_uid: Any, viewer_is_admin_or_mod: bool) -> bool:
    """Return True when ``viewer_uid`` must not see the author of ``item``."""
    if not parse_int_flag(item.get("anonymous")):
        return False
    if viewer_is_admin_or_mod:
        return False
    return not same_uid(viewer_uid, item.get("uid"))


def project_identity(
    real_user: Any,
    item: Mapping[str, Any],
    viewer_uid: Any,
    viewer_is_admin_or_mod: bool,
    *,
    words: AnonymousWords,
    avatar_url: str,
) -> Any:
    """Return the user record ``viewer_uid`` may see as the author of ``item``.

    ``item`` carries ``anonymous``, ``uid`` and ``tid``. ``real_user`` is
    returned unchanged (same object) unless masking applies.
    """
    if not should_mask(item, viewer_uid, viewer_is_admin_or_mod):
        return real_user
    name = anonymous_name_for(item.get("uid"), item.get("tid"), words)
    return anonymous_user(name, avatar_url)


class IdentityMasker:
    """``project_identity`` bound to the word lists and avatar of one configuration."""

    def __init__(self, settings: Settings, words: AnonymousWords | None = None) -> None:
        self.settings = settings
        self.words = words or get_anonymous_words(settings)

    def project(
        self,
        real_user: Any,
        item: Mapping[str, Any],
        viewer_uid: Any,
        viewer_is_admin_or_mod: bool,
    ) -> Any:
        """See ``project_identity``."""
        return project_identity(
            real_user,
            item,
            viewer_uid,
            viewer_is_admin_or_mod,
            words=self.words,
            avatar_url=self.settings.anonymous_avatar_url,
        )

    def mask_author(
        self,
        item: dict[str, Any],
        viewer_uid: Any,
        viewer_is_admin_or_mod: bool,
        *,
        field: str = "user",
    ) -> bool:
        """Replace ``item[field]`` with the author record ``viewer_uid`` may see.

        When the author is hidden, the item's own ``uid`` is zeroed as well so
        the record does not point back at the real account. Returns True if
        the author was hidden.
        """
        real_user = item.get(field)
        projected = self.project(real_user, item, viewer_uid, viewer_is_admin_or_mod)
        item[field] = projected
        if projected is real_user:
            return False
        item["uid"] = 0
        return True
