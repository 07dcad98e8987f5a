"""
simpleldap Test Suite

Test organization:
- unit/: Unit tests for individual modules
- property/: Property-based tests using Hypothesis
- integration/: Tests against a live directory server (skipped unless configured)
"""
