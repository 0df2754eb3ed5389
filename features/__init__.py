"""Features derived from the peak streams: PTT, HRV, correlation."""
