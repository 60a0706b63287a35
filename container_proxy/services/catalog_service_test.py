from container_proxy.packages.github import Package
from container_proxy.services.catalog_service import build_catalog
from container_proxy.tests.fakes import FakeOriginClient, make_package


async def test_empty_catalog():
    origin = FakeOriginClient()

    result = await build_catalog(origin, [""])

    assert result.status_code == 200
    assert result.to_dict() == {"repositories": []}


async def test_single_identity_two_packages():
    origin = FakeOriginClient()
    origin.packages[""] = [make_package("alpha", "u1"), make_package("beta", "u1")]

    result = await build_catalog(origin, [""])

    assert result.status_code == 200
    assert result.to_dict() == {"repositories": ["u1/alpha", "u1/beta"]}


async def test_queries_identities_in_order():
    origin = FakeOriginClient()

    await build_catalog(origin, ["", "a", "b"])

    assert origin.calls == [
        ("list_packages", "", "container"),
        ("list_packages", "a", "container"),
        ("list_packages", "b", "container"),
    ]


async def test_deduplicates_in_first_seen_order():
    origin = FakeOriginClient()
    origin.packages[""] = [
        make_package("web", "org1"),
        make_package("api", "me"),
    ]
    origin.packages["org1"] = [
        make_package("api", "org1"),
        make_package("web", "org1"),
        make_package("api", "me"),
    ]

    result = await build_catalog(origin, ["", "org1"])

    assert result.to_dict()["repositories"] == ["org1/web", "me/api", "org1/api"]


async def test_dedup_is_case_sensitive():
    origin = FakeOriginClient()
    origin.packages[""] = [make_package("App", "u"), make_package("app", "u")]

    result = await build_catalog(origin, [""])

    assert result.to_dict()["repositories"] == ["u/App", "u/app"]


async def test_duplicate_identities_are_harmless():
    origin = FakeOriginClient()
    origin.packages["a"] = [make_package("x", "a")]

    result = await build_catalog(origin, ["", "a", "a"])

    assert len(origin.calls) == 3
    assert result.to_dict()["repositories"] == ["a/x"]


async def test_skips_records_missing_name_or_owner():
    origin = FakeOriginClient()
    origin.packages[""] = [
        make_package(None, "u1"),
        make_package("nameless-owner", None),
        make_package("", "u1"),
        make_package("empty-owner", ""),
        Package(name="no-owner"),
        make_package("ok", "u1"),
    ]

    result = await build_catalog(origin, [""])

    assert result.status_code == 200
    assert result.to_dict()["repositories"] == ["u1/ok"]


async def test_partial_failure_returns_reachable_repositories():
    origin = FakeOriginClient()
    origin.package_errors[""] = "401 Bad credentials"
    origin.packages["org1"] = [make_package("x", "org1")]

    result = await build_catalog(origin, ["", "org1"])

    assert result.status_code == 200
    assert result.to_dict() == {"repositories": ["org1/x"]}


async def test_total_failure_returns_every_error():
    origin = FakeOriginClient()
    origin.package_errors[""] = "boom"
    origin.package_errors["org1"] = "boom"

    result = await build_catalog(origin, ["", "org1"])

    assert result.status_code == 400
    assert result.to_dict() == {
        "errors": [
            {"code": "UNKNOWN", "message": "ListPackages: boom"},
            {"code": "UNKNOWN", "message": "ListPackages: boom"},
        ]
    }


async def test_catalog_is_deterministic():
    origin = FakeOriginClient()
    origin.packages[""] = [make_package("b", "u"), make_package("a", "u")]
    origin.packages["org"] = [make_package("c", "org"), make_package("b", "u")]

    first = await build_catalog(origin, ["", "org"])
    second = await build_catalog(origin, ["", "org"])

    assert first.to_dict() == second.to_dict()


async def test_repository_names_are_well_formed():
    origin = FakeOriginClient()
    origin.packages[""] = [
        make_package("a", "u"),
        make_package(None, "u"),
        make_package("b", None),
        make_package("a", "u"),
        make_package("team/app", "u"),
        make_package("c", "v"),
    ]

    result = await build_catalog(origin, [""])
    repositories = result.to_dict()["repositories"]

    assert repositories == ["u/a", "v/c"]
    assert len(repositories) == len(set(repositories))
    for repository in repositories:
        owner, sep, name = repository.partition("/")
        assert sep == "/"
        assert owner and name
        assert "/" not in name
