import asyncio
from typing import Optional

from container_proxy.packages.github import (
    ContainerMetadata,
    OriginAPIError,
    Package,
    PackageListOptions,
    PackageOwner,
    PackageVersion,
    PackageVersionMetadata,
)


def make_package(name: Optional[str], login: Optional[str]) -> Package:
    owner = PackageOwner(login=login)
    return Package(name=name, owner=owner, package_type="container")


def make_version(tags: Optional[list[str]]) -> PackageVersion:
    if tags is None:
        return PackageVersion()
    return PackageVersion(
        metadata=PackageVersionMetadata(
            package_type="container",
            container=ContainerMetadata(tags=tags),
        )
    )


class FakeOriginClient:
    """In-memory OriginClient recording every call."""

    def __init__(self, delay: float = 0.0):
        self.packages: dict[str, list[Package]] = {}
        self.package_errors: dict[str, str] = {}
        self.versions: dict[tuple[str, str], list[PackageVersion]] = {}
        self.version_errors: dict[tuple[str, str], str] = {}
        self.calls: list[tuple] = []
        self.delay = delay

    async def list_packages(
        self,
        namespace: str,
        options: PackageListOptions,
    ) -> list[Package]:
        self.calls.append(("list_packages", namespace, options.package_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if namespace in self.package_errors:
            raise OriginAPIError(self.package_errors[namespace])
        return list(self.packages.get(namespace, []))

    async def list_package_versions(
        self,
        namespace: str,
        package_type: str,
        name: str,
        options: Optional[PackageListOptions] = None,
    ) -> list[PackageVersion]:
        self.calls.append(("list_package_versions", namespace, package_type, name))
        if self.delay:
            await asyncio.sleep(self.delay)
        if (namespace, name) in self.version_errors:
            raise OriginAPIError(self.version_errors[(namespace, name)])
        return list(self.versions.get((namespace, name), []))
