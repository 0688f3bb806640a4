"""
Predictive Motion Tracking

This package estimates smoothed, slightly predictive linear and angular
velocity (and acceleration) from a stream of discrete poses.

Key features:
- Fixed-size ring of time-bucketed motion samples
- Time-proportional splitting of each update across bucket boundaries
- Direction-weighted recombination that suppresses off-axis jitter
- Over-weighting of the newest bucket to reduce perceived lag
"""
