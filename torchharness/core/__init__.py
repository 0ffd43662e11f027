"""
Core logic - no ML framework dependencies.

Learning-rate schedules, run configuration and result aggregation that can
be tested without torch.
"""
