"""
Pipeline module for batch decoding.

Provides the per-shard dispatcher, stride sampling, timers, result output
and shard planning. This module can be used directly by SLURM scripts or
other orchestration systems.
"""
