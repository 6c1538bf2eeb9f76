import pytest
from ddxtree import MultiTargetPredictor, Prediction, TargetField, TreeParams
from ddxtree.records import TARGETS, make_record


def test_prediction_per_target(triage_records):
    predictor = MultiTargetPredictor.build(triage_records, TreeParams())
    pred = predictor.predict(triage_records[2])
    assert isinstance(pred, Prediction)
    assert pred.clinician == "pneumonia"
    assert pred.gpt4_0 is not None
    assert pred.ddx_snomed == "233604007"
    assert pred[TargetField.GEMINI] == pred["gemini"] == "pneumonia"
    assert list(pred.as_dict()) == list(TARGETS)


def test_training_accuracy(triage_records):
    predictor = MultiTargetPredictor.build(triage_records)
    scores = predictor.score(triage_records)
    assert set(scores) == set(TARGETS)
    assert scores["clinician"] == 1.0
    assert scores["ddx_snomed"] == 1.0
    assert all(0.0 <= s <= 1.0 for s in scores.values())


def test_score_skips_unlabelled_targets(panel_records):
    predictor = MultiTargetPredictor.build(panel_records)
    assert predictor.score(panel_records) == {"clinician": 1.0}


def test_all_missing_record_gets_root_majority(triage_records):
    predictor = MultiTargetPredictor.build(triage_records)
    pred = predictor.predict(make_record())
    for target in TargetField:
        tree = predictor.tree(target)
        expected = getattr(tree.root, "majority", getattr(tree.root, "value", None))
        assert pred[target] == expected
        assert pred[target] is not None


def test_end_to_end_panel_example(panel_records):
    params = TreeParams(max_depth=1, min_samples_leaf=2, min_gain_ratio=0.0)
    predictor = MultiTargetPredictor.build(panel_records, params)
    assert predictor.predict(make_record(clinical_panel="a")).clinician == "X"
    assert predictor.predict(make_record(clinical_panel="B")).clinician == "Y"
    # nothing to learn for the other targets
    assert predictor.predict(make_record(clinical_panel="a")).llama == "unknown"


def test_empty_training_set_predicts_unknown():
    predictor = MultiTargetPredictor.build([])
    pred = predictor.predict(make_record(county="nairobi"))
    assert pred.as_dict() == {t: "unknown" for t in TARGETS}


def test_parallel_build_matches_serial(triage_records):
    serial = MultiTargetPredictor.build(triage_records, TreeParams(max_depth=2))
    threaded = MultiTargetPredictor.build(triage_records, TreeParams(max_depth=2), n_jobs=2)
    for target in TargetField:
        assert serial.tree(target).export_rules() == threaded.tree(target).export_rules()
    assert serial.predict_many(triage_records) == threaded.predict_many(triage_records)


def test_training_records_are_not_modified(triage_records):
    before = [dict(r) for r in triage_records]
    MultiTargetPredictor.build(triage_records)
    assert [dict(r) for r in triage_records] == before


def test_constructor_requires_every_target(panel_records):
    from ddxtree import DecisionTree
    with pytest.raises(ValueError):
        MultiTargetPredictor({"clinician": DecisionTree.build(panel_records, "clinician")})
