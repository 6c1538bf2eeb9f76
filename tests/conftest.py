import pytest
from ddxtree.records import make_record


def _panel_records():
    """Four records: clinical_panel A -> X, B -> Y for the clinician."""
    return [
        make_record(clinical_panel=p, clinician=c)
        for p, c in [("A", "X"), ("A", "X"), ("B", "Y"), ("B", "Y")]
    ]


@pytest.fixture
def panel_records():
    return _panel_records()


@pytest.fixture
def triage_records():
    """Small training set with every attribute and target filled in."""
    rows = [
        # county, health_level, years, panel, clinician, gpt4_0, llama, gemini, ddx
        ("nairobi", "level 2", "5", "adult", "malaria", "malaria", "malaria", "flu", "61462000"),
        ("nairobi", "level 2", "10", "adult", "malaria", "malaria", "typhoid", "flu", "61462000"),
        ("kiambu", "level 3", "5", "paediatric", "pneumonia", "pneumonia", "pneumonia", "pneumonia", "233604007"),
        ("kiambu", "level 3", "10", "paediatric", "pneumonia", "asthma", "pneumonia", "pneumonia", "233604007"),
        ("kakamega", "level 4", "20", "maternal", "pre-eclampsia", "pre-eclampsia", "pre-eclampsia", "anaemia", "398254007"),
        ("kakamega", "level 4", "5", "maternal", "pre-eclampsia", "pre-eclampsia", "anaemia", "anaemia", "398254007"),
    ]
    fields = ("county", "health_level", "years_experience", "clinical_panel",
              "clinician", "gpt4_0", "llama", "gemini", "ddx_snomed")
    return [make_record(dict(zip(fields, row)), master_index=str(i)) for i, row in enumerate(rows)]
