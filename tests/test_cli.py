import pytest

import cli
from conftest import CONTRACT, OWNER
from nft_portfolio.errors import CollectionUnavailableError


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


@pytest.mark.asyncio
@pytest.mark.parametrize("flag,value", [("--page", "0"), ("--page-size", "-3"), ("--page", "two")])
async def test_bad_paging_is_a_usage_error(flag, value, capsys):
    with pytest.raises(SystemExit) as exc_info:
        await cli.main(["portfolio", CONTRACT, OWNER, flag, value])

    assert exc_info.value.code == 2
    assert flag in capsys.readouterr().err


@pytest.mark.asyncio
async def test_fatal_run_error_exits_with_status_one(monkeypatch, capsys):
    async def failing(contract, owner):
        raise CollectionUnavailableError("balanceOf returned 1000000000000000000000000", method="balanceOf")

    monkeypatch.setattr(cli, "build_portfolio", failing)

    assert await cli.main(["portfolio", CONTRACT, OWNER]) == 1
    assert "balanceOf returned" in capsys.readouterr().out


def test_positive_int_accepts_whole_numbers():
    assert cli.positive_int("3") == 3
