"""Mirroring pass orchestration.

Drives the pull, resolve and promote sequence for every ref required by
the catalog components of each remote, collecting one result per ref.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from flatmirror.catalog.codec import CatalogError
from flatmirror.catalog.fetcher import catalog_url
from flatmirror.mirror.promoter import RefPromoter
from flatmirror.mirror.resolver import RefResolver
from flatmirror.models.package import Component, PackageRef, RefKind, Remote
from flatmirror.models.result import MirrorOutcome, MirrorReport, MirrorResult
from flatmirror.store.ostree import OstreeStore, StoreError

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Anything that can turn a catalog URL into components."""

    def fetch_remote_catalog(self, url: str) -> list[Component]: ...


@dataclass(frozen=True, slots=True)
class ComponentRefs:
    """Refs derived from one catalog component.

    Attributes:
        component: The catalog component.
        app: The application ref, None when the bundle is not a deployable app.
        dependencies: Runtime (and optionally SDK) refs.
    """

    component: Component
    app: PackageRef | None
    dependencies: tuple[PackageRef, ...] = ()

    @property
    def all_refs(self) -> list[PackageRef]:
        """App ref first, then its dependencies."""
        refs = [self.app] if self.app is not None else []
        refs.extend(self.dependencies)
        return refs


class MirrorOrchestrator:
    """Runs mirroring passes against a store.

    Pulls may run concurrently on a bounded worker pool. Resolution,
    promotion and cleanup write to the store's ref namespace and are
    serialized by a single lock.

    Attributes:
        store: Target store.
        arch: Architecture used when a component names no full ref.
        default_branch: Branch used when a component names no full ref.
        include_sdk: Also mirror each component's SDK.
        pull_workers: Maximum number of concurrent pulls.
    """

    def __init__(
        self,
        store: OstreeStore,
        *,
        arch: str = "x86_64",
        default_branch: str = "stable",
        include_sdk: bool = False,
        pull_workers: int = 4,
        resolver: RefResolver | None = None,
        promoter: RefPromoter | None = None,
    ) -> None:
        self.store = store
        self.arch = arch
        self.default_branch = default_branch
        self.include_sdk = include_sdk
        self.pull_workers = max(1, pull_workers)
        self.resolver = resolver or RefResolver()
        self.promoter = promoter or RefPromoter()
        self._write_lock = threading.Lock()

    def run(
        self,
        remotes: list[Remote],
        catalog_fetcher: CatalogSource,
        max_per_remote: int | None = None,
    ) -> MirrorReport:
        """Mirror the catalog components of every remote.

        Args:
            remotes: Remotes to mirror from, in order.
            catalog_fetcher: Source of each remote's catalog.
            max_per_remote: Only process the first N components of each
                remote. None or 0 processes all.

        Returns:
            MirrorReport with one result per attempted ref.
        """
        report = MirrorReport()

        with ThreadPoolExecutor(max_workers=self.pull_workers) as executor:
            for remote in remotes:
                logger.info("Mirroring from %s", remote.name)
                url = catalog_url(remote, self.arch)
                try:
                    components = catalog_fetcher.fetch_remote_catalog(url)
                except CatalogError as e:
                    logger.error("Cannot fetch catalog of %s: %s", remote.name, e)
                    report.remote_errors[remote.name] = str(e)
                    continue

                if max_per_remote:
                    components = components[:max_per_remote]
                    logger.info("Limiting %s to %d components", remote.name, len(components))

                self._mirror_components(executor, remote, components, report)
                logger.info("Completed mirroring from %s", remote.name)

        return report

    def derive_refs(self, component: Component) -> ComponentRefs | None:
        """Work out which refs a catalog component needs.

        Args:
            component: Catalog component.

        Returns:
            ComponentRefs, or None if the component has no bundle information.
        """
        bundle = component.bundle
        if bundle is None:
            return None

        app: PackageRef | None = None
        if bundle.is_flatpak:
            try:
                if bundle.ref:
                    parsed = PackageRef.parse(bundle.ref)
                    app = parsed if parsed.is_app else None
                else:
                    app = PackageRef(RefKind.APP, component.id, self.arch, self.default_branch)
            except ValueError as e:
                logger.warning("Ignoring app ref of %s: %s", component.id, e)

        specs = [bundle.runtime]
        if self.include_sdk:
            specs.append(bundle.sdk)

        dependencies: list[PackageRef] = []
        for spec in specs:
            if not spec:
                continue
            try:
                dependencies.append(PackageRef.from_runtime_spec(spec))
            except ValueError as e:
                logger.warning("Ignoring runtime of %s: %s", component.id, e)

        return ComponentRefs(component=component, app=app, dependencies=tuple(dependencies))

    def mirror_ref(self, remote: Remote, ref: PackageRef, component_id: str) -> MirrorResult:
        """Pull, resolve and promote a single ref.

        Never raises for store or filesystem failures; they are reported
        in the result.

        Args:
            remote: Remote to pull from.
            ref: Ref to mirror.
            component_id: Catalog component that needs the ref.

        Returns:
            MirrorResult describing the outcome.
        """
        try:
            self.store.pull(remote.name, str(ref))
        except StoreError as e:
            logger.warning("Failed to pull %s: %s", ref, e)
            return MirrorResult(
                ref, MirrorOutcome.PULL_FAILED, remote.name, component_id, error=str(e)
            )

        with self._write_lock:
            try:
                resolution = self.resolver.resolve(self.store, remote, ref)
            except (StoreError, OSError) as e:
                logger.warning("Failed to resolve %s: %s", ref, e)
                return MirrorResult(
                    ref, MirrorOutcome.RESOLUTION_FAILED, remote.name, component_id, error=str(e)
                )
            if resolution is None:
                return MirrorResult(
                    ref,
                    MirrorOutcome.RESOLUTION_FAILED,
                    remote.name,
                    component_id,
                    error="Commit not found after pull",
                )

            try:
                self.promoter.promote(self.store, ref, resolution.commit)
            except StoreError as e:
                logger.warning("Failed to promote %s: %s", ref, e)
                return MirrorResult(
                    ref,
                    MirrorOutcome.PROMOTION_FAILED,
                    remote.name,
                    component_id,
                    commit=resolution.commit,
                    error=str(e),
                )

            extra = [resolution.path] if resolution.path is not None else []
            for advisory in self.promoter.cleanup(self.store, remote, ref, extra):
                if not advisory.ok:
                    logger.debug("Cleanup of %s: %s", ref, advisory.detail)

        return MirrorResult(
            ref, MirrorOutcome.PROMOTED, remote.name, component_id, commit=resolution.commit
        )

    def _mirror_components(
        self,
        executor: ThreadPoolExecutor,
        remote: Remote,
        components: list[Component],
        report: MirrorReport,
    ) -> None:
        """Submit every distinct ref of the components and wait for all of them.

        A ref needed by several components (usually a shared runtime) is
        pulled once; its result is reported once and shared by every
        component that needs it.
        """
        futures: dict[PackageRef, Future[MirrorResult]] = {}
        planned: list[ComponentRefs] = []
        total = len(components)

        for index, component in enumerate(components, start=1):
            refs = self.derive_refs(component)
            if refs is None:
                logger.info(
                    "[%d/%d] %s: no bundle information, skipping", index, total, component.id
                )
                continue

            logger.info("[%d/%d] Processing %s", index, total, component.display_name)
            for ref in refs.all_refs:
                if ref not in futures:
                    futures[ref] = executor.submit(self.mirror_ref, remote, ref, component.id)
            planned.append(refs)

        reported: set[PackageRef] = set()
        for refs in planned:
            for ref in refs.all_refs:
                if ref not in reported:
                    reported.add(ref)
                    report.results.append(futures[ref].result())

            if refs.app is not None and futures[refs.app].result().success:
                report.mirrored_components.append(refs.component)
