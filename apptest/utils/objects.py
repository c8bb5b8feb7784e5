from typing import Any, Callable, Generic, Type, TypeVar, cast

RT = TypeVar("RT")


class cached_property(Generic[RT]):
    """Property that computes its value once per instance.

    Assigning to the attribute replaces the cached value, which is how
    API handles are swapped out for fakes in tests.
    """

    def __init__(self, fget: Callable[[Any], RT], doc: str = None) -> None:
        self.__get = fget
        self.__doc__ = doc or fget.__doc__
        self.__name__ = fget.__name__
        self.__module__ = fget.__module__

    def is_set(self, obj: Any) -> bool:
        return self.__name__ in obj.__dict__

    def __get__(self, obj: Any, type: Type = None) -> RT:
        if obj is None:
            return cast(RT, self)
        try:
            return cast(RT, obj.__dict__[self.__name__])
        except KeyError:
            value = obj.__dict__[self.__name__] = self.__get(obj)
            return value

    def __set__(self, obj: Any, value: RT) -> None:
        obj.__dict__[self.__name__] = value

    def __delete__(self, obj: Any) -> None:
        obj.__dict__.pop(self.__name__, None)
