import json
import kopf
import kubernetes_asyncio

_ALREADY_EXISTS = "alreadyexists"
_NOT_FOUND = "notfound"
_CONFLICT = "conflict"

#: Seconds kopf waits before retrying after an optimistic-concurrency conflict
CONFLICT_RETRY_DELAY = 5

#: Seconds kopf waits before retrying after a transient failure
TEMPORARY_RETRY_DELAY = 30


class ReconcileError(Exception):
    """Base class for all errors raised by a reconciliation cycle."""


class ConfigurationError(ReconcileError):
    """Required input is missing or malformed (pull secret, identity, ...).

    Not retried until the upstream condition changes.
    """


class NotFoundError(ReconcileError):
    """A referenced object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        super().__init__(
            f"{kind} `{name}` not found in `{namespace}` namespace."
        )


class ResolutionError(ReconcileError):
    """Image version could not be resolved from the registry."""


class ConflictError(ReconcileError):
    """The object store rejected a write because the object changed concurrently."""


class IncompleteWriteError(ReconcileError):
    """The object store accepted a write but returned incomplete metadata."""


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (TypeError, ValueError):
        return ""
    return str(err.get("reason", "")).lower()


def already_exists_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 and _reason(ex) in (_ALREADY_EXISTS, "")


def not_found_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def conflict_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 or _reason(ex) == _CONFLICT


def convert_api_exception(ex: kubernetes_asyncio.client.ApiException, permanent: bool = None):
    """
    Convert kubernetes ApiException to a Kopf-friendly exception.

    Args:
        ex: The ApiException to convert
        permanent: If True, raises PermanentError (won't retry). If False, raises TemporaryError (will retry).
                   If None, automatically determines based on status code.

    Raises:
        kopf.TemporaryError or kopf.PermanentError with serializable error details
    """
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        raise ex

    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"

    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass

    # 4xx errors (except 408, 429) are typically permanent
    if permanent is None:
        is_permanent = 400 <= ex.status < 500 and ex.status not in [408, 429]
    else:
        is_permanent = permanent

    if is_permanent:
        raise kopf.PermanentError(error_msg) from ex
    else:
        raise kopf.TemporaryError(error_msg, delay=TEMPORARY_RETRY_DELAY) from ex


def convert_reconcile_error(ex: Exception):
    """
    Convert a reconciliation failure to the Kopf exception that drives its retry policy.

    Configuration problems are permanent until the DynaKube (or a secret it points to)
    changes. Everything else is retried by the next cycle. Exceptions outside the
    reconciliation taxonomy are re-raised unchanged.
    """
    if isinstance(ex, kubernetes_asyncio.client.ApiException):
        convert_api_exception(ex)
    if isinstance(ex, ConfigurationError):
        raise kopf.PermanentError(str(ex)) from ex
    if isinstance(ex, ConflictError):
        raise kopf.TemporaryError(str(ex), delay=CONFLICT_RETRY_DELAY) from ex
    if isinstance(ex, ReconcileError):
        raise kopf.TemporaryError(str(ex), delay=TEMPORARY_RETRY_DELAY) from ex
    raise ex
