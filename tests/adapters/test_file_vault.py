from decimal import Decimal

import pytest

from yield_router.adapters.vault.file_vault import FileVault
from yield_router.domain.errors import ConfigurationError


@pytest.mark.asyncio
async def test_reads_positions_and_derives_weights(tmp_path):
    (tmp_path / "positions.yaml").write_text(
        "positions:\n"
        "  - protocol_id: kamino-solana\n"
        "    value_usd: 600\n"
        "    current_apy: 0.052\n"
        "  - protocol_id: aave-base\n"
        "    value_usd: 400\n"
    )

    total, positions = await FileVault(tmp_path).fetch_positions("positions.yaml")

    assert total == Decimal("1000")
    assert [p.protocol_id for p in positions] == ["kamino-solana", "aave-base"]
    assert positions[0].weight == Decimal("0.6")
    assert positions[0].current_apy == Decimal("0.052")
    assert positions[1].weight == Decimal("0.4")
    assert positions[1].current_apy == Decimal("0")


@pytest.mark.asyncio
async def test_absolute_handle_ignores_base_dir(tmp_path):
    path = tmp_path / "vault.yaml"
    path.write_text("positions:\n  - protocol_id: x\n    value_usd: 10\n")

    total, positions = await FileVault("/nonexistent").fetch_positions(str(path))

    assert total == Decimal("10")
    assert positions[0].weight == Decimal("1")


@pytest.mark.asyncio
async def test_missing_file_is_empty_vault(tmp_path):
    total, positions = await FileVault(tmp_path).fetch_positions("nope.yaml")
    assert total == Decimal("0")
    assert positions == []


@pytest.mark.asyncio
async def test_zero_value_vault_has_zero_weights(tmp_path):
    (tmp_path / "v.yaml").write_text("positions:\n  - protocol_id: x\n    value_usd: 0\n")
    total, positions = await FileVault(tmp_path).fetch_positions("v.yaml")
    assert total == Decimal("0")
    assert positions[0].weight == Decimal("0")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "positions: not-a-list\n",
        "positions:\n  - value_usd: 10\n",
        "positions:\n  - protocol_id: x\n    value_usd: -5\n",
    ],
)
async def test_malformed_file_rejected(tmp_path, content):
    (tmp_path / "bad.yaml").write_text(content)
    with pytest.raises(ConfigurationError):
        await FileVault(tmp_path).fetch_positions("bad.yaml")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content", "field"),
    [
        ("positions:\n  - protocol_id: x\n    value_usd: lots\n", "value_usd"),
        ("positions:\n  - protocol_id: x\n    value_usd: 10\n    current_apy: high\n", "current_apy"),
        ("positions:\n  - protocol_id: x\n    value_usd: 10\n    current_apy:\n", "current_apy"),
        ("positions:\n  - protocol_id: x\n    value_usd: .nan\n", "value_usd"),
    ],
)
async def test_unparseable_numbers_rejected(tmp_path, content, field):
    (tmp_path / "bad.yaml").write_text(content)

    with pytest.raises(ConfigurationError) as exc:
        await FileVault(tmp_path).fetch_positions("bad.yaml")

    assert exc.value.protocol == "x"
    assert exc.value.details["field"] == field
    assert field in exc.value.message
