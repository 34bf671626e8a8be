"""Analysis - the phased, streamed home affordability report.

fetch (market data) -> compute (deterministic math) -> synthesize (narrative)
"""
