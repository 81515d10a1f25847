"""
recon_batch -- Periodic reconciliation job and composition root.

Architecture:
    recon_batch/ is a top-level package.  Nothing in kernel/, engines/
    or services/ imports from recon_batch.

Invariants:
    - Clock injection (no datetime.now() calls)
    - One job at a time per process
    - The job runner never raises
    - Graceful shutdown
"""
