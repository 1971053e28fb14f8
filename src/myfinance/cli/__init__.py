"""
Command Line Interface Package

Command Structure:
- myfinance run: one reconciliation pass over unread notifications
- myfinance records / portfolio / balance: ledger queries as JSON
- myfinance serve: HTTP facade for the dashboard
- myfinance config / version: utility commands
"""
