from enum import Enum
from functools import wraps


class Format(Enum):
    u64 = 64

    @property
    def max_value(self) -> int:
        return (2 ** self.value) - 1

    @property
    def max_digits(self) -> int:
        # Room for 2^N itself, one past the largest value
        return len(str(2 ** self.value))


def bounded_uint(fmt: Format):
    def decorator(cls):
        @wraps(cls)
        def wrapper(*args, **kwargs):
            instance = cls.__new__(cls)

            def __init__(self, value, positive: bool = False):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise TypeError(f'Value must be of type {int.__name__}')

                min_value = 1 if positive else 0
                if value < min_value:
                    raise ValueError(f'Value must be at least {min_value}')

                if value > fmt.max_value:
                    raise ValueError(f'Value must be at most {fmt.max_value}')

                self.value = value

            instance.__init__ = __init__.__get__(instance)
            instance.__init__(*args, **kwargs)
            return instance

        return wrapper

    return decorator


@bounded_uint(Format.u64)
class U64:
    pass


MAX_U64_DIGITS = Format.u64.max_digits


def parse_uint(text: str, positive: bool = True) -> int:
    """
    Parses a strictly decimal unsigned integer, rejecting signs, blanks and out of range values.
    """
    if not text.isdigit():
        raise ValueError(f'Not a decimal number: {text!r}')

    return U64(int(text), positive=positive).value
