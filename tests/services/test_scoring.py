from decimal import Decimal

from yield_router.config.settings import CrossChainSettings, ScoringSettings
from yield_router.domain.models import LiquidityTier, ProtocolMeta, StrategyCategory, YieldRecord
from yield_router.services.scoring import cross_chain_risk_score, score_record, score_records


def _record(protocol_id: str, tvl: str, apy: str = "0.05", chain: str = "solana") -> YieldRecord:
    return YieldRecord(protocol_id=protocol_id, chain=chain, asset="USDC", total_apy=Decimal(apy), tvl_usd=Decimal(tvl))


def _meta(reputation: str, category=StrategyCategory.LENDING, tier=LiquidityTier.LOW) -> ProtocolMeta:
    return ProtocolMeta(
        protocol_id="p",
        name="P",
        chain="solana",
        base_reputation=Decimal(reputation),
        category=category,
        liquidity_tier=tier,
    )


class TestScoreRecord:
    def test_clean_history_large_tvl(self):
        # tvl: log10(100) * 8 = 16; rep: 88/100*25 = 22; age 20; exploit 25
        score = score_record(_record("p", "100000000"), _meta("88"))
        assert score.tvl_score == Decimal("16.0")
        assert score.reputation_score == Decimal("22.0")
        assert score.age_score == Decimal("20.0")
        assert score.exploit_score == Decimal("25.0")
        assert score.total == Decimal("83.0")

    def test_exploit_penalty_below_clean_threshold(self):
        # rep 72 < 80 -> exploit 25 - 8 = 17; tvl at scale -> 0
        score = score_record(_record("p", "1000000"), _meta("72"))
        assert score.tvl_score == Decimal("0")
        assert score.reputation_score == Decimal("18.0")
        assert score.exploit_score == Decimal("17.0")
        assert score.total == Decimal("55.0")

    def test_tvl_below_scale_scores_zero(self):
        score = score_record(_record("p", "250000"), _meta("80"))
        assert score.tvl_score == Decimal("0")

    def test_tvl_sub_score_is_capped(self):
        score = score_record(_record("p", "1000000000000"), _meta("100"))
        assert score.tvl_score == Decimal("25.0")
        assert score.total == Decimal("95.0")

    def test_total_rounded_to_one_decimal(self):
        # log10(50) * 8 = 13.591...
        score = score_record(_record("p", "50000000"), _meta("90"))
        assert score.tvl_score == Decimal("13.6")
        assert score.total == score.total.quantize(Decimal("0.1"))

    def test_total_clamped_to_100(self):
        generous = ScoringSettings(age_score=Decimal("60"))
        score = score_record(_record("p", "1000000000000"), _meta("100"), generous)
        assert score.total == Decimal("100.0")

    def test_deterministic(self):
        record, meta = _record("p", "12345678"), _meta("77")
        assert score_record(record, meta) == score_record(record, meta)


class TestScoreRecords:
    def test_unknown_protocol_gets_neutral_score(self, registry, caplog):
        records = [_record("kamino-solana", "100000000"), _record("mystery-protocol", "100000000")]
        scores = score_records(records, registry)

        assert scores["kamino-solana"].total == Decimal("83.0")
        assert scores["mystery-protocol"].total == Decimal("50")
        assert scores["mystery-protocol"].tvl_score == Decimal("0")
        assert "mystery-protocol" in caplog.text

    def test_empty_input(self, registry):
        assert score_records([], registry) == {}


class TestCrossChainRiskScore:
    def test_lending_low_liquidity_clamped_at_100(self):
        # 88 + 10 (tvl bonus cap) + 0 + 5 = 103 -> 100
        score = cross_chain_risk_score(_record("p", "1000000000"), _meta("88"))
        assert score == Decimal("100")

    def test_vault_medium_liquidity(self):
        # 72 + 0 - 5 + 0
        meta = _meta("72", StrategyCategory.VAULT, LiquidityTier.MEDIUM)
        assert cross_chain_risk_score(_record("p", "10000000"), meta) == Decimal("67")

    def test_perp_lp_high_liquidity(self):
        # tvl 100M -> log10(10) * 5 = 5; 70 + 5 - 15 - 5
        meta = _meta("70", StrategyCategory.PERP_LP, LiquidityTier.HIGH)
        assert cross_chain_risk_score(_record("p", "100000000"), meta) == Decimal("55")

    def test_uses_configured_penalties(self):
        strict = CrossChainSettings(liquidity_penalties={"low": Decimal("-20")})
        assert cross_chain_risk_score(_record("p", "10000000"), _meta("80"), strict) == Decimal("65")
