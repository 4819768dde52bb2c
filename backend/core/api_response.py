"""Retired result builders.

``ok``/``fail`` moved to ``core.errors``. This module stays only to catch
stale imports: importing it is harmless, calling anything on it raises.
Delete once nothing references it.
"""

REPLACEMENT = "core.errors"


class RetiredModuleError(RuntimeError):
    """Raised when a retired module is used."""


class _RetiredApi:
    __slots__ = ()

    def ok(self, *args, **kwargs):
        raise RetiredModuleError(
            f"Deprecated: use `ok()` from '{REPLACEMENT}' instead of '{__name__}'"
        )

    def fail(self, *args, **kwargs):
        raise RetiredModuleError(
            f"Deprecated: use `fail()` from '{REPLACEMENT}' instead of '{__name__}'"
        )

    def __getattr__(self, name: str):
        if name.startswith("__"):
            raise AttributeError(name)

        def retired(*args, **kwargs):
            raise RetiredModuleError(
                f"Deprecated: use `{name}` from '{REPLACEMENT}' instead of '{__name__}'"
            )
        return retired

    def __repr__(self) -> str:
        return f"<retired {__name__}: use {REPLACEMENT}>"


api = _RetiredApi()

ok = api.ok
fail = api.fail
