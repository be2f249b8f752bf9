"""Storage layer: request pipeline, auth, pagination, manifests and blobs."""
