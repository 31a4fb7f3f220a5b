"""
Generic list/watch cache for custom resources.

One ``Reflector`` serves any custom resource kind described by a
``WatchedKind``; there is no per-type lister or informer code. A reflector
lists the kind once, then follows a watch from the listed resource version,
keeping an in-memory cache keyed by ``namespace/name``. An expired resource
version (HTTP 410) triggers a relist; any other failure clears ``synced``
so readers fall back to the API server until the relist succeeds.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from kubernetes import watch
from kubernetes.client.rest import ApiException
from pydantic import BaseModel

from postgres_operator.constants import (
    CATALOG_GROUP,
    DEFAULT_REFLECTOR_RETRY_DELAY,
    KUBEDB_GROUP,
    KUBEDB_VERSION,
    POSTGRES_PLURAL,
    POSTGRES_VERSION_PLURAL,
)
from postgres_operator.utils.kubernetes import ClusterContext, describe_api_error

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]


class WatchedKind(BaseModel):
    """Group/version/plural of a watched custom resource."""

    model_config = {"frozen": True}

    group: str
    version: str
    plural: str
    namespaced: bool = True

    def __str__(self) -> str:
        return f"{self.plural}.{self.group}/{self.version}"


POSTGRES = WatchedKind(group=KUBEDB_GROUP, version=KUBEDB_VERSION, plural=POSTGRES_PLURAL)
POSTGRES_VERSION = WatchedKind(
    group=CATALOG_GROUP,
    version=KUBEDB_VERSION,
    plural=POSTGRES_VERSION_PLURAL,
    namespaced=False,
)


class ResourceVersionExpired(Exception):
    """The watch resource version is too old and a relist is needed."""


def cache_key(obj: dict[str, Any]) -> str:
    metadata = obj.get("metadata") or {}
    namespace = metadata.get("namespace")
    name = metadata.get("name", "")
    return f"{namespace}/{name}" if namespace else name


class Reflector:
    """List/watch cache for one ``WatchedKind``."""

    def __init__(
        self,
        context: ClusterContext,
        kind: WatchedKind,
        namespace: str | None = None,
    ):
        if namespace and not kind.namespaced:
            raise ValueError(f"{kind} is cluster-scoped")
        self.context = context
        self.kind = kind
        self.namespace = namespace
        self.resource_version: str | None = None
        self._cache: dict[str, dict[str, Any]] = {}
        self._handlers: list[EventHandler] = []
        self._lock = threading.Lock()
        self.synced = threading.Event()

    def add_handler(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def _list_call(self) -> tuple[Callable[..., Any], tuple[Any, ...]]:
        api = self.context.custom_objects
        if self.namespace:
            return api.list_namespaced_custom_object, (
                self.kind.group,
                self.kind.version,
                self.namespace,
                self.kind.plural,
            )
        return api.list_cluster_custom_object, (
            self.kind.group,
            self.kind.version,
            self.kind.plural,
        )

    def list_and_sync(self) -> None:
        """Replace the cache with a fresh list and remember its resource version."""
        func, args = self._list_call()
        result = func(*args)
        items = result.get("items") or []
        with self._lock:
            self._cache = {cache_key(item): item for item in items}
            self.resource_version = (result.get("metadata") or {}).get(
                "resourceVersion"
            )
        self.synced.set()
        logger.debug(f"Listed {len(items)} {self.kind} at {self.resource_version}")

    def apply_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")
        obj = event.get("object") or {}

        if event_type == "ERROR":
            if obj.get("code") == 410:
                raise ResourceVersionExpired(obj.get("message", ""))
            logger.warning(f"Watch error for {self.kind}: {obj}")
            return

        key = cache_key(obj)
        with self._lock:
            if event_type in ("ADDED", "MODIFIED"):
                self._cache[key] = obj
            elif event_type == "DELETED":
                self._cache.pop(key, None)
            else:
                logger.debug(f"Ignoring {event_type} event for {self.kind}")
                return
            version = (obj.get("metadata") or {}).get("resourceVersion")
            if version:
                self.resource_version = version

        for handler in self._handlers:
            handler(event_type, obj)

    def get(self, name: str, namespace: str | None = None) -> dict[str, Any] | None:
        key = f"{namespace}/{name}" if namespace else name
        with self._lock:
            return self._cache.get(key)

    def list(self, namespace: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            items = list(self._cache.values())
        if namespace is None:
            return items
        return [i for i in items if (i.get("metadata") or {}).get("namespace") == namespace]

    def _follow(self, stop_event: threading.Event, timeout_seconds: int) -> None:
        func, args = self._list_call()
        w = watch.Watch()
        for event in w.stream(
            func,
            *args,
            resource_version=self.resource_version,
            timeout_seconds=timeout_seconds,
        ):
            self.apply_event(event)
            if stop_event.is_set():
                w.stop()
                break

    def run(
        self,
        stop_event: threading.Event,
        timeout_seconds: int = 60,
        retry_delay: float = DEFAULT_REFLECTOR_RETRY_DELAY,
    ) -> None:
        """
        Follow the watch until ``stop_event`` is set. Blocks the calling thread.

        ``synced`` is only set while the cache tracks the API server: it is
        cleared on any list or watch failure, which is logged and retried
        after ``retry_delay`` with a fresh list, and when this method returns.
        """
        try:
            while not stop_event.is_set():
                try:
                    if not self.synced.is_set():
                        self.list_and_sync()
                    self._follow(stop_event, timeout_seconds)
                except ResourceVersionExpired:
                    logger.info(f"Resource version expired for {self.kind}, relisting")
                    self.synced.clear()
                except ApiException as e:
                    self.synced.clear()
                    if e.status == 410:
                        logger.info(f"Resource version expired for {self.kind}, relisting")
                        continue
                    logger.warning(
                        f"Watch for {self.kind} failed: {describe_api_error(e)}; "
                        f"retrying in {retry_delay}s"
                    )
                    stop_event.wait(retry_delay)
                except Exception as e:
                    # Connection errors from urllib3 surface here
                    self.synced.clear()
                    logger.warning(
                        f"Watch for {self.kind} failed: {describe_api_error(e)}; "
                        f"retrying in {retry_delay}s"
                    )
                    stop_event.wait(retry_delay)
        finally:
            self.synced.clear()


class ReflectorRegistry:
    """One reflector per (kind, namespace), created on first use."""

    def __init__(self, context: ClusterContext):
        self.context = context
        self._reflectors: dict[tuple[WatchedKind, str | None], Reflector] = {}

    def for_kind(self, kind: WatchedKind, namespace: str | None = None) -> Reflector:
        key = (kind, namespace)
        if key not in self._reflectors:
            self._reflectors[key] = Reflector(self.context, kind, namespace)
        return self._reflectors[key]

    def start_all(self, stop_event: threading.Event) -> list[threading.Thread]:
        threads = []
        for reflector in self._reflectors.values():
            thread = threading.Thread(
                target=reflector.run,
                args=(stop_event,),
                name=f"reflector-{reflector.kind.plural}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)
        return threads
