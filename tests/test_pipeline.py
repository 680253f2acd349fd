from brokercrm.domain.models import Opportunity
from brokercrm.services.pipeline import filter_opportunities, stage_probability, summarize_pipeline


def _opps() -> list[Opportunity]:
    return [
        Opportunity(id="1", name="Seguro Auto", stage="Nova", value=1000.0, product_name="Auto"),
        Opportunity(id="2", name="Residencial", stage="Proposta Enviada", value=2000.0, user_name="Ana"),
        Opportunity(id="3", name="Vida", stage="Ganha", value=3000.0),
        Opportunity(id="4", name="Frota", stage="Perdida", value=4000.0),
    ]


def test_summarize_pipeline() -> None:
    summary = summarize_pipeline(_opps())
    assert summary.total_value == 10000.0
    assert summary.average_value == 2500.0
    assert summary.win_rate == 25.0
    assert summary.active == 2
    assert summary.won == 1
    assert summary.lost == 1
    # 1000 * 10% + 2000 * 60% + 3000 * 100%
    assert summary.weighted_value == 4300.0
    by_stage = {stage.stage: stage for stage in summary.stages}
    assert by_stage["Contactada"].count == 0
    assert by_stage["Ganha"].value == 3000.0


def test_empty_pipeline() -> None:
    summary = summarize_pipeline([])
    assert summary.total_value == 0
    assert summary.average_value == 0.0
    assert summary.win_rate == 0.0


def test_unknown_stage_has_zero_probability() -> None:
    assert stage_probability("Contactada") == 25
    assert stage_probability("Arquivada") == 0


def test_filter_opportunities() -> None:
    opps = _opps()
    assert [o.id for o in filter_opportunities(opps, stage="Ganha")] == ["3"]
    assert [o.id for o in filter_opportunities(opps, search="auto")] == ["1"]
    assert [o.id for o in filter_opportunities(opps, search="ana")] == ["2"]
