"""Runnable demonstration of steadfast strategies."""
