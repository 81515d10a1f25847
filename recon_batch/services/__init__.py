"""recon_batch.services -- Scheduler and tickers."""

from recon_batch.services.scheduler import SyncScheduler
from recon_batch.services.ticker import ManualTicker, ThreadTicker, Ticker

__all__ = ["ManualTicker", "SyncScheduler", "ThreadTicker", "Ticker"]
