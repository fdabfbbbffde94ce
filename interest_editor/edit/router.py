"""
Token Router - ordered dispatch of interaction tokens to handlers.

Routes are evaluated in registration order and the first match wins, so
specific prefixes must be registered before more general ones. A token that
matches nothing is logged and ignored.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from interest_editor.models import UserId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionEvent:
    """One button press: the token plus who pressed it and where."""
    token: str
    user_id: UserId
    chat_context: Any = None


Handler = Callable[[InteractionEvent, Optional[str]], Any]


@dataclass(frozen=True)
class ExactMatch:
    literal: str

    def match(self, token: str) -> Optional[str]:
        # Empty string means "matched, no parameter"
        return "" if token == self.literal else None


@dataclass(frozen=True)
class PrefixMatch:
    prefix: str

    def match(self, token: str) -> Optional[str]:
        # The remainder must be non-empty
        if len(token) > len(self.prefix) and token.startswith(self.prefix):
            return token[len(self.prefix):]
        return None


Matcher = Union[ExactMatch, PrefixMatch]


@dataclass(frozen=True)
class Route:
    matcher: Matcher
    handler: Handler


@dataclass(frozen=True)
class DispatchResult:
    matched: bool
    result: Any = None
    param: Optional[str] = None
    route: Optional[Route] = None


NO_MATCH = DispatchResult(matched=False)


class TokenRouter:
    """Ordered list of (matcher, handler) routes."""

    def __init__(self):
        self._routes: List[Route] = []

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    def register_exact(self, token: str, handler: Handler) -> None:
        self._routes.append(Route(ExactMatch(token), handler))

    def register_prefix(self, prefix: str, handler: Handler) -> None:
        if not prefix:
            raise ValueError("Prefix must not be empty")
        self._routes.append(Route(PrefixMatch(prefix), handler))

    def resolve(self, token: str) -> Optional[tuple]:
        """Return (route, param) for the first matching route, or None."""
        for route in self._routes:
            remainder = route.matcher.match(token)
            if remainder is None:
                continue
            param = remainder if isinstance(route.matcher, PrefixMatch) else None
            return route, param
        return None

    def dispatch(self, token: str, event: InteractionEvent) -> DispatchResult:
        """
        Invoke the first handler whose matcher accepts the token.

        Returns:
            DispatchResult with the handler's return value, or NO_MATCH
        """
        resolved = self.resolve(token)
        if resolved is None:
            logger.debug(f"No route matched for token: {token!r}")
            return NO_MATCH

        route, param = resolved
        logger.debug(f"Token {token!r} -> {route.matcher} (param={param!r})")
        result = route.handler(event, param)
        return DispatchResult(matched=True, result=result, param=param, route=route)

    def handle(self, event: InteractionEvent) -> DispatchResult:
        return self.dispatch(event.token, event)
