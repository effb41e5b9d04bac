"""Identity-to-position row index.

This module maps stable row identities to their current positions in
the column store and remembers every identity ever issued so that none
is reused within one dataset.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Hashable, Iterable, Iterator, Sequence

from core.errors import TabulaConfigError, TabulaDuplicateIdentityError, TabulaIdentityNotFoundError


class IdentityGenerator:
    """Monotonic integer identity source, starting at 1."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def __call__(self) -> int:
        return next(self._counter)


class RowIndex:
    """Bijection between live identities and positions ``[0, len)``."""

    def __init__(
        self,
        id_generator: Callable[[], Hashable] | None = None,
        retired: Iterable[Hashable] = (),
    ) -> None:
        """Create an empty index.

        Args:
            id_generator: Produces candidate identities for new rows.
            retired: Identities issued earlier that must never be handed out again.
        """
        self._id_generator = id_generator or IdentityGenerator()
        self._order: list[Hashable] = []
        self._positions: dict[Hashable, int] = {}
        self._issued: set[Hashable] = set(retired)

    def new_identity(self) -> Hashable:
        """Return a fresh identity that was never issued by this index."""
        identity = self._id_generator()
        while identity in self._issued:
            identity = self._id_generator()
        return identity

    def check_available(self, identity: Hashable) -> None:
        """Reject an identity that is live or was issued before.

        Raises:
            TabulaConfigError: If the identity is not hashable.
            TabulaDuplicateIdentityError: If the identity was already issued.
        """
        try:
            issued = identity in self._issued
        except TypeError as error:
            raise TabulaConfigError(
                f"Row identity {identity!r} is not hashable. Use a string or number for '_id'."
            ) from error
        if issued:
            raise TabulaDuplicateIdentityError(
                f"Row identity {identity!r} was already issued by this dataset. "
                "Identities are never reused; omit '_id' to have one generated."
            )

    def assign(self, identity: Hashable) -> int:
        """Append an identity and return its position."""
        self.check_available(identity)
        position = len(self._order)
        self._order.append(identity)
        self._positions[identity] = position
        self._issued.add(identity)
        return position

    def position_of(self, identity: Any) -> int:
        """Return the current position of an identity.

        Raises:
            TabulaIdentityNotFoundError: If the identity is not live.
        """
        try:
            return self._positions[identity]
        except (KeyError, TypeError) as error:
            raise TabulaIdentityNotFoundError(identity) from error

    def identity_at(self, position: int) -> Hashable:
        """Return the identity stored at a position."""
        return self._order[position]

    def remove(self, identity: Any) -> int:
        """Remove a live identity and shift later positions down by one.

        Returns:
            The position the identity occupied.
        """
        position = self.position_of(identity)
        del self._order[position]
        del self._positions[identity]
        for later_position in range(position, len(self._order)):
            self._positions[self._order[later_position]] = later_position
        return position

    def permute(self, new_order: Sequence[int]) -> None:
        """Reorder so that new position i holds the row at old position new_order[i].

        Raises:
            ValueError: If ``new_order`` is not a permutation of current positions.
        """
        if sorted(new_order) != list(range(len(self._order))):
            raise ValueError("new_order must be a permutation of the current positions.")
        self._order = [self._order[old_position] for old_position in new_order]
        self._positions = {identity: position for position, identity in enumerate(self._order)}

    def issued(self) -> frozenset[Hashable]:
        """Return every identity this index has ever assigned or inherited."""
        return frozenset(self._issued)

    def identities(self) -> tuple[Hashable, ...]:
        """Return live identities in position order."""
        return tuple(self._order)

    def __contains__(self, identity: object) -> bool:
        try:
            return identity in self._positions
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(tuple(self._order))
