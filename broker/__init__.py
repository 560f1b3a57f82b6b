"""
NFS Broker - Share Lifecycle Service

The broker exposes NFS-backed shares to an orchestrator through the
service-broker v2 contract.
Responsibilities:
- Mount the remote NFS root once per process
- Create/remove one share directory per service instance
- Issue volume-mount descriptors for bindings
- Persist instances and bindings to flat JSON files
"""
