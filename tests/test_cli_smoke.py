from fgps.__main__ import main
from tests.helpers import clone_snapshot, simple_snapshot_dict, write_snapshot


def test_validate_mode_exits_zero(capsys):
    code = main(["sample_snapshot.json", "--validate"])

    assert code == 0
    assert "Snapshot is valid." in capsys.readouterr().out


def test_invalid_snapshot_returns_one(tmp_path, sample_snapshot_dict, capsys):
    data = clone_snapshot(sample_snapshot_dict)
    data["general"]["age"] = 10
    path = write_snapshot(tmp_path, data)

    code = main([str(path), "--validate"])

    assert code == 1
    assert "ERROR: general.age: must be between 18 and 100" in capsys.readouterr().err


def test_missing_snapshot_file_returns_two(tmp_path):
    missing = tmp_path / "nope.json"
    assert main([str(missing), "--validate"]) == 2


def test_malformed_json_returns_two(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    assert main([str(path)]) == 2
    assert "Failed to load snapshot" in capsys.readouterr().err


def test_projection_summary_and_csv(tmp_path, sample_snapshot_dict, capsys):
    path = write_snapshot(tmp_path, sample_snapshot_dict)
    output_path = tmp_path / "projection.csv"

    code = main([str(path), "--csv", str(output_path), "--yearly", "--timeline"])

    assert code == 0
    assert output_path.exists()
    assert output_path.read_text(encoding="utf-8").startswith("month,age,net_worth")
    out = capsys.readouterr().out
    assert "Starting net worth:" in out
    assert "FIRE target: $1,170,000" in out
    assert "starterEF: month 0" in out
    assert "Wrote projection to" in out


def test_template_and_order_options(tmp_path, sample_snapshot_dict, capsys):
    path = write_snapshot(tmp_path, sample_snapshot_dict)
    order = "taxableInvesting,max401k,moderateDebt,hsaIra,highInterestDebt"

    code = main([str(path), "--template", "side_hustle_1k", "--order", order])

    assert code == 0
    out = capsys.readouterr().out
    assert "Scenario: +$1K Monthly" in out
    assert f"Priority order: {order.replace(',', ', ')}" in out


def test_debt_comparison_and_sensitivity(tmp_path, sample_snapshot_dict, capsys):
    path = write_snapshot(tmp_path, sample_snapshot_dict)

    code = main([str(path), "--debts", "--extra", "2500", "--sensitivity"])

    assert code == 0
    out = capsys.readouterr().out
    assert "avalanche:" in out
    assert "snowball:" in out
    assert "Recommendation:" in out
    assert "+10% Income" in out


def test_debts_option_without_debts(tmp_path, capsys):
    path = write_snapshot(tmp_path, simple_snapshot_dict())

    assert main([str(path), "--debts"]) == 0
    assert "No active debts to compare." in capsys.readouterr().out


def test_retirement_age_not_after_current_age_is_invalid(tmp_path, capsys):
    data = simple_snapshot_dict(age=40, months=0)
    path = write_snapshot(tmp_path, data)

    code = main([str(path)])

    assert code == 1
    assert "must be greater than general.age (40)" in capsys.readouterr().err


def test_retirement_under_half_a_month_away_skips_projection(tmp_path, capsys):
    data = simple_snapshot_dict()
    data["general"]["target_retirement"] = 30.02
    path = write_snapshot(tmp_path, data)

    assert main([str(path)]) == 0
    assert "No projection: target retirement age must be greater than current age." in capsys.readouterr().out
