"""
Test Fixtures and Utilities

Sample notification messages, a fake mailbox and a recording notifier.
All test data is synthetic and does not contain real financial information.
"""
