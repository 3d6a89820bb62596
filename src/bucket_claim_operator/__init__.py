"""Bucket Claim Operator: provisions object-storage buckets for bucket claims."""

__version__ = "0.1.0"
