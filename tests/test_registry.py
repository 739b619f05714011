import pytest

from registry import InMemoryStore, Registry, ReposNotInstalledError


def test_unknown_repo_is_not_installed_until_added():
    reg = Registry()
    assert reg.is_installed("octo/a") is False
    assert reg.is_installed(None) is False

    reg.add_repository("octo/a", "octo", 7)

    assert reg.is_installed("octo/a") is True
    assert reg.installation_id("octo/a") == 7
    assert reg.repos_for_org("octo") == ["octo/a"]


def test_add_repository_is_idempotent():
    reg = Registry()
    reg.add_repository("octo/a", "octo", 7)
    reg.add_repository("octo/a", "octo", 8)

    assert reg.repos_for_org("octo") == ["octo/a"]
    assert reg.installation_id("octo/a") == 8
    assert reg.installed_count() == 1


def test_register_org_repos_unions_without_duplicates():
    reg = Registry()
    reg.add_repository("octo/a", "octo", 1)
    reg.add_repository("octo/b", "octo", 1)

    assert reg.register_org_repos("partners", ["octo/a"]) == ["octo/a"]
    assert reg.register_org_repos("partners", ["octo/b", "octo/a"]) == ["octo/a", "octo/b"]
    assert reg.repos_for_org("partners") == ["octo/a", "octo/b"]


def test_register_org_repos_rejects_whole_batch():
    reg = Registry()
    reg.add_repository("octo/a", "octo", 1)
    reg.register_org_repos("partners", ["octo/a"])

    with pytest.raises(ReposNotInstalledError) as ei:
        reg.register_org_repos("partners", ["octo/a", "octo/ghost", "octo/other"])

    assert ei.value.missing == ["octo/ghost", "octo/other"]
    assert "octo/ghost, octo/other" in str(ei.value)
    assert reg.repos_for_org("partners") == ["octo/a"]


def test_failed_batch_does_not_create_org():
    reg = Registry()
    with pytest.raises(ReposNotInstalledError):
        reg.register_org_repos("newcomer", ["nope/nope"])
    assert reg.repos_for_org("newcomer") is None


def test_repos_for_org_returns_copy():
    reg = Registry()
    reg.add_repository("octo/a", "octo", 1)
    reg.repos_for_org("octo").append("octo/injected")
    assert reg.repos_for_org("octo") == ["octo/a"]


def test_org_for_repo_scans_orgs():
    reg = Registry()
    reg.add_repository("octo/a", "octo", 1)
    reg.add_repository("acme/x", "acme", 2)

    assert reg.org_for_repo("acme/x") == "acme"
    assert reg.org_for_repo("octo/a") == "octo"
    assert reg.org_for_repo("nobody/none") is None


def test_registry_uses_injected_store():
    store = InMemoryStore()
    reg = Registry(store)
    reg.add_repository("octo/a", "octo", 3)

    assert store.get_installation("octo/a") == 3
    assert store.get_org_repos("octo") == ["octo/a"]
