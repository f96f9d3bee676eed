"""Reception Aid: front office and facility operations API."""
