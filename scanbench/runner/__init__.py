"""Sweep runner internals.

Modules:
- channel: line-oriented child process wrapper (spawn, write, read-until, close)
- load / target: the two protocols spoken to the workload and the program under test
- exec: scenario and sweep orchestration
- stats, report: aggregation and output
"""
