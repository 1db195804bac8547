# Service layer for the OBS render delay server
# - obs_client:     the single obs-websocket session (connect, filter get/set)
# - delay_service:  concurrent delay listing and validated delay updates
