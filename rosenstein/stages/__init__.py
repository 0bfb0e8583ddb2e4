"""
Stage runners — orchestrate I/O (read observations, call engines, write parquet).

    rosenstein.stages.lyapunov   per-signal Lyapunov exponent
"""
