import pandas as pd
from ddxtree.cli import main

HEADER = "County,Health level,Years of Experience,Clinical Panel,Clinician,GPT4.0,LLAMA,GEMINI,DDX SNOMED"
ROWS = [
    "Nairobi,Level 2,5,Adult,Malaria,Malaria,Malaria,Flu,61462000",
    "Nairobi,Level 2,10,Adult,Malaria,Malaria,Typhoid,Flu,61462000",
    "Kiambu,Level 3,5,Paediatric,Pneumonia,Pneumonia,Pneumonia,Pneumonia,233604007",
    "Kiambu,Level 3,10,Paediatric,Pneumonia,Asthma,Pneumonia,Pneumonia,233604007",
]


def _train_csv(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("\n".join([HEADER, *ROWS]) + "\n", encoding="utf-8")
    return path


def test_train_predict(tmp_path):
    train = _train_csv(tmp_path)
    new = tmp_path / "new.csv"
    new.write_text("County,Clinical Panel\nKIAMBU,Paediatric\n,\n", encoding="utf-8")
    out = tmp_path / "pred.csv"
    code = main(["train-predict", "--train", str(train), "--input", str(new),
                 "--output", str(out), "--max-depth", "3", "--jobs", "2"])
    assert code == 0
    df = pd.read_csv(out, dtype=str, keep_default_na=False)
    assert len(df) == 2
    assert df.loc[0, "pred_clinician"] == "pneumonia"
    assert df.loc[1, "pred_clinician"] == "malaria"


def test_train_predict_with_config(tmp_path):
    train = _train_csv(tmp_path)
    cfg = tmp_path / "params.yaml"
    cfg.write_text("tree:\n  max_depth: 0\n", encoding="utf-8")
    out = tmp_path / "pred.csv"
    assert main(["train-predict", "--train", str(train), "--config", str(cfg),
                 "--output", str(out)]) == 0
    df = pd.read_csv(out, dtype=str, keep_default_na=False)
    assert len(df) == len(ROWS)
    assert set(df["pred_clinician"]) == {"malaria"}


def test_rules_command(tmp_path, capsys):
    train = _train_csv(tmp_path)
    assert main(["rules", "--train", str(train), "--target", "ddx_snomed"]) == 0
    out = capsys.readouterr().out
    assert "clinical_panel = paediatric => 233604007" in out


def test_missing_file_exit_code(tmp_path):
    assert main(["rules", "--train", str(tmp_path / "nope.csv")]) == 1


def test_bad_config_exit_code(tmp_path):
    train = _train_csv(tmp_path)
    assert main(["rules", "--train", str(train), "--max-depth", "-1"]) == 1


def test_rules_command_builds_only_one_tree(tmp_path, capsys, monkeypatch):
    import ddxtree.cli

    def _fail(*args, **kwargs):
        raise AssertionError("rules should not build every target")
    monkeypatch.setattr(ddxtree.cli.MultiTargetPredictor, "build", _fail)
    train = _train_csv(tmp_path)
    assert main(["rules", "--train", str(train), "--target", "clinician"]) == 0
    assert "clinical_panel = adult => malaria" in capsys.readouterr().out
