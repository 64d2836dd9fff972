import enum
from functools import reduce
import operator as op


class BitEnum(enum.IntEnum):
    """A type for enums representing bitmask field values.
    """
    @classmethod
    def pack(cls, *members):
        """Pack members into a bitmask.

        Parameters
        ----------
        *members : BitEnum or str
            The members, or their names, to set.

        Returns
        -------
        bitmask : int
            The packed bitmask.
        """
        try:
            return reduce(
                op.or_,
                (cls[m] if isinstance(m, str) else cls(m) for m in members),
                0,
            )
        except KeyError as e:
            raise TypeError(f'{e} is not a member of {cls.__qualname__}')

    @classmethod
    def unpack(cls, bitmask):
        """Unpack a bitmask into the members it contains.

        Parameters
        ----------
        bitmask : int
            The bitmask to unpack.

        Returns
        -------
        members : frozenset[BitEnum]
            The members whose bits are set.
        """
        return frozenset(m for m in cls if bitmask & m)
