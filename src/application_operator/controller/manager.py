"""Controller manager: watches, work queue and worker pool.

Two watch threads feed the work queue:

- the Application watch enqueues the Application of every event, and every
  listed Application on start and after a re-list;
- the ClusterIssuer watch fans out. Issuers carry no owner reference, so an
  issuer event enqueues every Application (``issuer_fanout="all"``, one
  enqueue per known Application per event) or only the Applications of the
  namespace encoded in the issuer name (``issuer_fanout="namespace"``).

``max_concurrent_reconciles`` worker threads drain the queue. The queue
guarantees a single in-flight reconcile per Application.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from application_operator.controller.exceptions import (
    InvalidApplicationError,
    ReconcileCancelledError,
    ReconcileError,
)
from application_operator.controller.metrics import ReconcileMetrics
from application_operator.controller.naming import namespace_from_issuer_name
from application_operator.controller.queue import WorkQueue
from application_operator.controller.reconciler import ApplicationReconciler, ReconcileRequest
from application_operator.integrations.kubernetes.models.application import (
    APPLICATION_GROUP,
    APPLICATION_PLURAL,
    APPLICATION_VERSION,
)
from application_operator.services.kubernetes.application_manager import ApplicationManager
from application_operator.services.kubernetes.certmanager_manager import (
    CERT_MANAGER_GROUP,
    CERT_MANAGER_VERSION,
    CLUSTER_ISSUER_PLURAL,
)

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig

logger = structlog.get_logger()

WATCH_BACKOFF_MAX_SECONDS = 30.0
WORKER_POLL_SECONDS = 1.0
JOIN_TIMEOUT_SECONDS = 5.0


class ControllerManager:
    """Runs the Application controller until asked to stop."""

    def __init__(
        self,
        client: KubernetesClient,
        controller_config: ControllerConfig,
        *,
        metrics: ReconcileMetrics | None = None,
        reconciler: ApplicationReconciler | None = None,
        queue: WorkQueue | None = None,
    ) -> None:
        self._client = client
        self._config = controller_config
        self._metrics = metrics or ReconcileMetrics()
        self._reconciler = reconciler or ApplicationReconciler(
            client, controller_config, self._metrics
        )
        self._queue = queue or WorkQueue(
            backoff_base=controller_config.backoff_base_seconds,
            backoff_max=controller_config.backoff_max_seconds,
        )
        self._applications = ApplicationManager(client)
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._watchers: list[Any] = []
        self._watchers_lock = threading.Lock()
        self._log = logger.bind(component="manager")

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the watch threads and the worker pool."""
        self._log.info(
            "controller_starting",
            watch_namespace=self._config.watch_namespace or "*",
            workers=self._config.max_concurrent_reconciles,
            issuer_fanout=self._config.issuer_fanout,
        )
        self._spawn("application-watch", self._watch_applications)
        self._spawn("issuer-watch", self._watch_issuers)
        for index in range(self._config.max_concurrent_reconciles):
            self._spawn(f"worker-{index}", self._worker)

    def run(self) -> None:
        """Start, then block until :meth:`request_stop` is called."""
        self.start()
        try:
            while not self._stop.wait(WORKER_POLL_SECONDS):
                pass
        finally:
            self.shutdown()

    def request_stop(self) -> None:
        """Ask every thread to stop. Safe to call from a signal handler."""
        self._stop.set()
        self._queue.shut_down()

    def shutdown(self) -> None:
        """Stop the threads and wait for in-flight reconciles to return."""
        self.request_stop()
        with self._watchers_lock:
            for watcher in self._watchers:
                watcher.stop()
        for thread in self._threads:
            thread.join(timeout=JOIN_TIMEOUT_SECONDS)
        self._threads.clear()
        self._log.info("controller_stopped")

    def _spawn(self, name: str, target: Callable[[], None]) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        thread.start()
        self._threads.append(thread)

    # =========================================================================
    # Event handling
    # =========================================================================

    def enqueue(self, request: ReconcileRequest) -> None:
        self._queue.add(request)
        self._metrics.set_queue_depth(len(self._queue))

    def handle_application_event(self, event_type: str, obj: dict[str, Any]) -> None:
        """Enqueue the Application an ADDED or MODIFIED event is about."""
        if event_type not in ("ADDED", "MODIFIED"):
            return
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        if not name:
            return
        self.enqueue(ReconcileRequest(namespace=metadata.get("namespace") or "default", name=name))

    def handle_issuer_event(self, event_type: str, obj: dict[str, Any]) -> int:
        """Fan an issuer event out to the Applications it may concern.

        Returns:
            Number of Applications enqueued.
        """
        if event_type not in ("ADDED", "MODIFIED", "DELETED"):
            return 0
        issuer = (obj.get("metadata") or {}).get("name", "")
        namespace = self._config.watch_namespace
        if self._config.issuer_fanout == "namespace":
            issuer_namespace = namespace_from_issuer_name(issuer)
            if issuer_namespace is None:
                return 0
            if namespace and namespace != issuer_namespace:
                return 0
            namespace = issuer_namespace

        count = 0
        for app in self._applications.list_applications(namespace):
            self.enqueue(ReconcileRequest(namespace=app.namespace, name=app.name))
            count += 1
        self._metrics.observe_fanout(count)
        self._log.debug("issuer_event_fanned_out", issuer=issuer, event=event_type, count=count)
        return count

    # =========================================================================
    # Workers
    # =========================================================================

    def _worker(self) -> None:
        while not self._stop.is_set():
            self.process_next(timeout=WORKER_POLL_SECONDS)

    def process_next(self, timeout: float | None = None) -> bool:
        """Reconcile one queued request.

        Returns:
            False when nothing was processed (timeout or shutdown).
        """
        item = self._queue.get(timeout=timeout)
        if item is None:
            return False
        if not isinstance(item, ReconcileRequest):
            self._queue.done(item)
            return True

        log = self._log.bind(application=item.name, namespace=item.namespace)
        try:
            result = self._reconciler.reconcile(item, cancel=self._stop)
        except ReconcileCancelledError:
            pass
        except InvalidApplicationError:
            self._queue.forget(item)
        except ReconcileError as e:
            delay = self._queue.add_rate_limited(item)
            log.warning(
                "reconcile_requeued",
                step=e.step,
                delay=delay,
                attempts=self._queue.num_requeues(item),
            )
        except Exception:
            delay = self._queue.add_rate_limited(item)
            log.exception(
                "reconcile_crashed", delay=delay, attempts=self._queue.num_requeues(item)
            )
        else:
            self._queue.forget(item)
            if result.requeue_after is not None:
                self._queue.add_after(item, result.requeue_after)
                log.debug("reconcile_scheduled", delay=result.requeue_after)
        finally:
            self._queue.done(item)
            self._metrics.set_queue_depth(len(self._queue))
        return True

    # =========================================================================
    # Watches
    # =========================================================================

    def _watch_applications(self) -> None:
        custom = self._client.custom_objects
        if self._config.watch_namespace:
            list_func = custom.list_namespaced_custom_object
            args: tuple[str, ...] = (
                APPLICATION_GROUP,
                APPLICATION_VERSION,
                self._config.watch_namespace,
                APPLICATION_PLURAL,
            )
        else:
            list_func = custom.list_cluster_custom_object
            args = (APPLICATION_GROUP, APPLICATION_VERSION, APPLICATION_PLURAL)

        def on_list(items: list[dict[str, Any]]) -> None:
            for item in items:
                self.handle_application_event("ADDED", item)

        self._watch_forever("Application", list_func, args, on_list, self.handle_application_event)

    def _watch_issuers(self) -> None:
        listed_once = False

        def on_list(items: list[dict[str, Any]]) -> None:
            nonlocal listed_once
            # A re-list may hide transitions missed while disconnected.
            if listed_once:
                for item in items:
                    self.handle_issuer_event("MODIFIED", item)
            listed_once = True

        self._watch_forever(
            "ClusterIssuer",
            self._client.custom_objects.list_cluster_custom_object,
            (CERT_MANAGER_GROUP, CERT_MANAGER_VERSION, CLUSTER_ISSUER_PLURAL),
            on_list,
            self.handle_issuer_event,
        )

    def _watch_forever(
        self,
        kind: str,
        list_func: Callable[..., Any],
        args: tuple[str, ...],
        on_list: Callable[[list[dict[str, Any]]], None],
        on_event: Callable[[str, dict[str, Any]], Any],
    ) -> None:
        """List, then watch from the listed resourceVersion until stopped.

        ``410 Gone`` forces a fresh list; other failures back off with
        jitter, doubling up to ``WATCH_BACKOFF_MAX_SECONDS``.
        """
        from kubernetes import watch
        from kubernetes.client import ApiException

        log = self._log.bind(kind=kind)
        resource_version: str | None = None
        backoff = 1.0
        while not self._stop.is_set():
            watcher = watch.Watch()
            with self._watchers_lock:
                self._watchers.append(watcher)
            try:
                if resource_version is None:
                    listing = list_func(*args, _request_timeout=self._client.timeout)
                    resource_version = (listing.get("metadata") or {}).get("resourceVersion")
                    on_list(listing.get("items") or [])
                    log.info("watch_listed", resource_version=resource_version)

                for event in watcher.stream(
                    list_func,
                    *args,
                    resource_version=resource_version,
                    timeout_seconds=self._config.watch_timeout_seconds,
                    _request_timeout=self._config.watch_timeout_seconds + self._client.timeout,
                ):
                    if self._stop.is_set():
                        break
                    obj = event.get("object") or {}
                    if not isinstance(obj, dict):
                        continue
                    version = (obj.get("metadata") or {}).get("resourceVersion")
                    if version:
                        resource_version = version
                    on_event(str(event.get("type", "")), obj)
                backoff = 1.0
            except ApiException as e:
                if e.status == 410:
                    log.warning("watch_expired_relisting")
                    resource_version = None
                    continue
                log.error("watch_failed", status=e.status, reason=e.reason)
                backoff = self._backoff(backoff)
            except Exception as e:
                log.error("watch_failed", error=str(e))
                backoff = self._backoff(backoff)
            finally:
                watcher.stop()
                with self._watchers_lock:
                    if watcher in self._watchers:
                        self._watchers.remove(watcher)

    def _backoff(self, current: float) -> float:
        """Sleep a jittered ``current`` seconds and return the next delay."""
        self._stop.wait(timeout=current * (0.5 + random.random()))  # noqa: S311
        return min(current * 2, WATCH_BACKOFF_MAX_SECONDS)
