# Storage package: key-value capability, capsule/progress stores, bootstrap
