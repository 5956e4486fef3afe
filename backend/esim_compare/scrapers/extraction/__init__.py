"""Page data extraction strategies.

- dom_scan: pattern-match rendered anchors and price text
- embedded_data: decode the serialized component state embedded in markup
"""
