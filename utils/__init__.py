# Helpers shared by storage and routes
