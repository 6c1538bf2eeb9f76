import pandas as pd
from time import perf_counter
from ddxtree import MultiTargetPredictor, TreeParams
from ddxtree.records import records_from_frame

df = pd.read_csv("triage.csv", dtype=str, keep_default_na=False)
records = records_from_frame(df)

params = TreeParams(max_depth=4, min_samples_leaf=5, min_gain_ratio=0.01)

t0 = perf_counter(); predictor = MultiTargetPredictor.build(records, params, n_jobs=5)
print(f"fit: {perf_counter()-t0:.3f} s")
for target, acc in predictor.score(records).items():
    print(f"{target:>12}: {acc:.3f}")

tree = predictor.tree("clinician")
tree.print_tree()
try:
    tree.export_graphviz("clinician_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
