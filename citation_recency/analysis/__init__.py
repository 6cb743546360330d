"""Citation & Recency Analysis.

Pure, network-free building blocks of the recency pipeline:
  1. Pattern library (sources headers, URLs, date formats)
  2. Citation extractor (bare URLs, numbered markers, Sources sections)
  3. Date extractor (URL paths, scraped markdown, metadata values)
  4. Recency scoring (publication date -> 0..100 freshness score)
"""
