"""robots.txt exclusion rules."""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def _is_relevant_agent(agent: str) -> bool:
    agent = agent.strip().lower()
    return agent == '*' or 'bot' in agent


def _wildcard_to_regex(rule: str) -> Pattern:
    """Translate a robots.txt wildcard rule into a regex anchored at the path start."""
    anchored_end = rule.endswith('$')
    if anchored_end:
        rule = rule[:-1]
    pattern = '^' + re.escape(rule).replace(r'\*', '.*')
    if anchored_end:
        pattern += '$'
    return re.compile(pattern)


@dataclass(frozen=True)
class ExclusionRuleSet:
    """Disallow rules from robots.txt for ``*`` and any agent containing "bot".

    Immutable after parsing. An absent or empty robots.txt yields an empty
    rule set that allows every URL.
    """

    rules: Tuple[str, ...] = ()
    _patterns: Tuple[Optional[Pattern], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        patterns = tuple(
            _wildcard_to_regex(rule) if ('*' in rule or rule.endswith('$')) else None
            for rule in self.rules
        )
        object.__setattr__(self, '_patterns', patterns)

    @classmethod
    def parse(cls, robots_txt: Optional[str]) -> "ExclusionRuleSet":
        """Parse robots.txt text into a rule set.

        Only ``Disallow`` lines inside a group whose ``User-agent`` matches
        ``*`` or contains "bot" are kept. Anything unparsable is ignored.

        Args:
            robots_txt: Raw robots.txt content, or None when absent

        Returns:
            ExclusionRuleSet with the relevant disallow rules in file order
        """
        if not robots_txt:
            return cls()

        rules: List[str] = []
        group_relevant = False
        in_agent_lines = False

        for raw_line in robots_txt.splitlines():
            line = raw_line.split('#', 1)[0].strip()
            if not line or ':' not in line:
                continue

            directive, value = line.split(':', 1)
            directive = directive.strip().lower()
            value = value.strip()

            if directive == 'user-agent':
                # Consecutive User-agent lines share one group
                if in_agent_lines:
                    group_relevant = group_relevant or _is_relevant_agent(value)
                else:
                    group_relevant = _is_relevant_agent(value)
                in_agent_lines = True
                continue

            in_agent_lines = False
            if directive == 'disallow' and group_relevant and value:
                rules.append(value)

        return cls(rules=tuple(rules))

    @classmethod
    def allow_all(cls) -> "ExclusionRuleSet":
        return cls()

    @property
    def disallows_everything(self) -> bool:
        return '/' in self.rules

    def is_allowed(self, url: str) -> bool:
        """Check whether a URL may be crawled.

        Args:
            url: Absolute URL to check

        Returns:
            False if any rule matches the URL path by prefix or wildcard
        """
        if not self.rules:
            return True

        try:
            parsed = urlparse(url)
        except ValueError:
            return True

        path = parsed.path or '/'
        if parsed.query:
            path = f"{path}?{parsed.query}"

        for rule, pattern in zip(self.rules, self._patterns):
            if rule == '/':
                return False
            if path.startswith(rule):
                return False
            if pattern is not None and pattern.match(path):
                return False

        return True

    def __len__(self) -> int:
        return len(self.rules)
