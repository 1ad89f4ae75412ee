"""
Stage pipeline — five independently re-runnable stages that reverse and
reissue fiscal invoices, each filtering on its own checkpoints.

Entry point is pipeline.engine.StageRunner; stages are registered in
pipeline.registry.
"""
