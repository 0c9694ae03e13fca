"""Core client logic.

Subpackages:
- sync: snapshot reconciliation and live lists bound to a gateway subscription
- forms: form session controller and the per-screen form definitions
- bulk: Excel import and data export orchestration
- imc: body mass index computation and banding
"""
__all__ = ["sync", "forms", "bulk", "imc"]
