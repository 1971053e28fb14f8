"""
Test Suite for MyFinance

Test Structure:
- fixtures/: Sample notification bodies and in-memory collaborators
- unit/: Unit tests mirroring src/ package structure
- integration/: Full reconciliation passes over a fake mailbox

Test Data:
All notification bodies, amounts and fund names are synthetic.
"""
