"""Palaver's handler registries.

A :class:`Registry` maps regular expressions to callbacks. The bot owns two
of them: one for raw lines, and one for the body of messages. Dispatching a
text through a registry is a two-step operation:

1. :meth:`Registry.get_triggered` takes a snapshot of the rules matching the
   text, sorted by priority then by registration order,
2. the caller invokes each callback of that snapshot.

Since the snapshot is taken before any callback runs, a callback can
register or remove rules (including itself) without affecting the round in
progress: the change applies from the next text on.

.. important::

    The registries are an implementation detail of the
    :class:`bot <palaver.bot.Bot>`. Use its :meth:`~palaver.bot.Bot.on`,
    :meth:`~palaver.bot.Bot.on_once` and :meth:`~palaver.bot.Bot.listen_for`
    methods to register handlers.

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import functools
import logging
import re
from typing import Callable, Optional, Union


__all__ = [
    'PRIORITY_HIGH',
    'PRIORITY_MEDIUM',
    'PRIORITY_LOW',
    'PRIORITY_CORE_LAST',
    'PRIORITIES',
    'compile_pattern',
    'Rule',
    'Registry',
]

LOGGER = logging.getLogger(__name__)

PRIORITY_HIGH = 'high'
"""Highest rule priority."""
PRIORITY_MEDIUM = 'medium'
"""Medium rule priority."""
PRIORITY_LOW = 'low'
"""Lowest rule priority available to handlers."""
PRIORITY_CORE_LAST = 'core-last'
"""Priority of core rules that must run after every other rule.

Handlers registered through the bot can't use it: see :data:`PRIORITIES`.
"""
PRIORITY_SCALES = {
    PRIORITY_HIGH: 0,
    PRIORITY_MEDIUM: 100,
    PRIORITY_LOW: 1000,
    PRIORITY_CORE_LAST: 10000,
}
"""Mapping of priority label to priority scale."""
PRIORITIES = (PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW)
"""Priorities a handler can be registered with."""

PatternType = Union[str, re.Pattern]


def compile_pattern(pattern: PatternType, flags: int = 0) -> re.Pattern:
    """Compile ``pattern`` unless it is already compiled.

    :param pattern: a regular expression, as a string or compiled
    :param flags: flags to compile a string ``pattern`` with
    :raise ValueError: when ``flags`` are given with a compiled ``pattern``
    """
    if isinstance(pattern, re.Pattern):
        if flags:
            raise ValueError('Cannot set flags on a compiled pattern.')
        return pattern
    return re.compile(pattern, flags)


class Rule:
    """A pattern bound to a callback.

    :param pattern: compiled regular expression to search for
    :param callback: function called when ``pattern`` matches
    :param priority: a key of :data:`PRIORITY_SCALES`; defaults to
                     :data:`PRIORITY_MEDIUM`
    """
    def __init__(
        self,
        pattern: re.Pattern,
        callback: Callable,
        priority: str = PRIORITY_MEDIUM,
    ):
        if priority not in PRIORITY_SCALES:
            raise ValueError('Unknown priority: %r' % priority)
        self._pattern = pattern
        self._callback = callback
        self._priority = priority

    def __repr__(self):
        return '<Rule %r priority=%s callback=%s>' % (
            self._pattern.pattern,
            self._priority,
            getattr(self._callback, '__name__', repr(self._callback)),
        )

    @property
    def pattern(self) -> re.Pattern:
        return self._pattern

    @property
    def callback(self) -> Callable:
        return self._callback

    @property
    def priority(self) -> str:
        return self._priority

    @property
    def priority_scale(self) -> int:
        """Rule's priority on a numeric scale; lower runs first."""
        return PRIORITY_SCALES[self._priority]

    def match(self, text: str) -> Optional[re.Match]:
        """Search for the rule's pattern anywhere in ``text``."""
        return self._pattern.search(text)


class Registry:
    """Ordered collection of :class:`Rule`, keyed by pattern.

    Registering a pattern that is already registered (same pattern string,
    same flags) replaces its rule: the new callback takes the place of the
    old one and keeps its place in the registration order.
    """
    def __init__(self) -> None:
        self._rules: dict[re.Pattern, Rule] = {}

    def __len__(self):
        return len(self._rules)

    def register(
        self,
        pattern: PatternType,
        callback: Callable,
        priority: str = PRIORITY_MEDIUM,
    ) -> Rule:
        """Register a ``callback`` for ``pattern``.

        :param pattern: regular expression to search for
        :param callback: function to call on a match
        :param priority: rule's priority
        :return: the registered rule
        """
        rule = Rule(compile_pattern(pattern), callback, priority)
        self._rules[rule.pattern] = rule
        LOGGER.debug('Rule registered: %r', rule)
        return rule

    def register_once(
        self,
        pattern: PatternType,
        callback: Callable,
        priority: str = PRIORITY_MEDIUM,
    ) -> Rule:
        """Register a ``callback`` for ``pattern``, for one call only.

        :param pattern: regular expression to search for
        :param callback: function to call on a match
        :param priority: rule's priority
        :return: the registered rule

        The ``callback`` is wrapped so that, once it has returned without
        raising, its rule is removed from the registry. If the pattern was
        registered again in the meantime, the new rule is left untouched.
        """
        @functools.wraps(callback)
        def once(*args):
            callback(*args)
            self.discard(rule)

        rule = self.register(pattern, once, priority)
        return rule

    def unregister(self, pattern: PatternType) -> bool:
        """Remove the rule registered for ``pattern``.

        :return: ``True`` if a rule was removed, ``False`` otherwise
        """
        rule = self._rules.pop(compile_pattern(pattern), None)
        if rule is None:
            return False
        LOGGER.debug('Rule removed: %r', rule)
        return True

    def discard(self, rule: Rule) -> bool:
        """Remove ``rule`` if it is still the one registered for its pattern.

        :return: ``True`` if ``rule`` was removed, ``False`` otherwise
        """
        if self._rules.get(rule.pattern) is not rule:
            return False
        del self._rules[rule.pattern]
        LOGGER.debug('Rule removed: %r', rule)
        return True

    def get_triggered(self, text: str) -> tuple[tuple[Rule, re.Match], ...]:
        """Get the rules matching ``text``, with their match objects.

        :param text: a raw line or a message body
        :return: a tuple of 2-value tuples ``(rule, match)``, sorted by
                 priority, then by registration order

        The result is a snapshot: changing the registry afterward does not
        change it.
        """
        matches = []
        for rule in tuple(self._rules.values()):
            match = rule.match(text)
            if match is not None:
                matches.append((rule, match))

        # sorted() is stable: registration order is kept within a priority
        return tuple(sorted(matches, key=lambda x: x[0].priority_scale))
