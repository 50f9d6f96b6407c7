"""Custom Prometheus metrics for the IAP Optimizer.

Collectors live in the default registry; the embedding application decides
how to expose them (e.g. prometheus_client.start_http_server).
Worth alerting on:
- initializations_total{outcome!="success"} (bad model packages shipped)
- predictions_total{outcome="configuration_error"} (callers sending incomplete feature maps)
- recommended_offers_total (distribution drift of recommended offers)
"""

from prometheus_client import Counter, Histogram

# === Lifecycle Metrics ===

initializations_total = Counter(
    "iap_initializations_total",
    "Total initialize attempts by outcome",
    ["outcome"],
)
"""
Labels:
- outcome: success, missing_metadata, malformed_metadata, configuration_error, backend_error
"""

initialization_latency_seconds = Histogram(
    "iap_initialization_latency_seconds",
    "Time to load the model and parse its preprocessing metadata",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# === Prediction Metrics ===

predictions_total = Counter(
    "iap_predictions_total",
    "Total predictions by outcome",
    ["outcome"],
)
"""
Labels:
- outcome: success, not_initialized, invalid_input, configuration_error, decode_error, backend_error
"""

prediction_latency_seconds = Histogram(
    "iap_prediction_latency_seconds",
    "Encode + forward pass + decode latency",
    buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)

recommended_offers_total = Counter(
    "iap_recommended_offers_total",
    "Recommended offers by label",
    ["offer"],
)

skipped_features_total = Counter(
    "iap_skipped_features_total",
    "Input features ignored during encoding",
    ["reason"],
)
"""
Labels:
- reason: unknown_feature (name not in preprocess.json)
"""

# === Offer Events ===

offer_events_total = Counter(
    "iap_offer_events_total",
    "Offer events by event name and offer type",
    ["event", "offer_type"],
)
"""
Labels:
- event: offer_iap (offer shown), offer_accepted
- offer_type: label from output_mapping
"""
