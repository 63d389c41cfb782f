from unittest import mock

import pytest
import requests

from aursync.aur import AurClient, AurPackage
from aursync.errors import AurError


def make_client(payload=None, exc=None):
    session = mock.Mock()
    if exc is not None:
        session.get.side_effect = exc
    else:
        resp = mock.Mock()
        resp.json.return_value = payload
        session.get.return_value = resp
    config = mock.Mock(
        rpc_url="https://aur.archlinux.org/rpc/",
        aur_base_url="https://aur.archlinux.org",
        proxy_url=None,
        verify_ssl=True,
        retries=0,
        timeout_connect=3,
        timeout_read=7,
    )
    return AurClient(config, session=session), session


def test_info_parses_records():
    payload = {
        "type": "multiinfo",
        "resultcount": 1,
        "results": [
            {
                "Name": "aura-bin",
                "Version": "3.2.9-1",
                "Description": "A secure AUR package manager",
                "NumVotes": 120,
                "Popularity": 1.5,
                "Maintainer": None,
                "OutOfDate": 1700000000,
                "Depends": ["git"],
                "License": ["GPL3"],
            }
        ],
    }
    client, session = make_client(payload)
    [pkg] = client.info(["aura-bin", "missing"])

    assert pkg.name == "aura-bin"
    assert pkg.num_votes == 120
    assert pkg.is_orphan
    assert pkg.is_out_of_date
    assert pkg.depends == ["git"]
    params = session.get.call_args.kwargs["params"]
    assert params["type"] == "info"
    assert params["arg[]"] == ["aura-bin", "missing"]
    assert session.get.call_args.kwargs["timeout"] == (3, 7)


def test_info_empty_names_skips_request():
    client, session = make_client({"results": []})
    assert client.info([]) == []
    session.get.assert_not_called()


def test_search_empty():
    client, session = make_client({"type": "search", "resultcount": 0, "results": []})
    assert client.search("xyz-does-not-exist") == []
    assert session.get.call_args.kwargs["params"]["arg"] == "xyz-does-not-exist"


def test_rpc_error_payload():
    client, _ = make_client({"type": "error", "results": [], "error": "Query arg too small."})
    with pytest.raises(AurError, match="too small"):
        client.search("a")


def test_transport_error():
    client, _ = make_client(exc=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(AurError):
        client.info(["aura"])


def test_package_url():
    client, _ = make_client({"results": []})
    assert client.package_url("aura") == "https://aur.archlinux.org/packages/aura"


def test_from_json_defaults():
    pkg = AurPackage.from_json({"Name": "x", "Version": "1-1"})
    assert pkg.description is None
    assert pkg.num_votes == 0
    assert not pkg.is_out_of_date
