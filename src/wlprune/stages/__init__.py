"""
Stages of a prune run, in call order:

    sort_order.SortEnforcer -> scan.Scanner -> delete.DeletionEngine -> export
"""
