"""
Engines Module
==============

Responsibility:
- Back-end fit functions the registered engine descriptors point at.
- Mixture discriminant analysis built on scikit-learn Gaussian mixtures.
- Thin scikit-learn wrappers with constructor parameter filtering.

Engine descriptors reference these functions by module path so they are only
imported when a fit is actually requested.
"""
