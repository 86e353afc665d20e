"""
Constants used throughout the authz package
"""

# object types
COMMUNITY  = "community"
COLLECTION = "collection"
ITEM       = "item"
BUNDLE     = "bundle"
BITSTREAM  = "bitstream"
GROUP      = "group"
EPERSON    = "eperson"

OBJECT_TYPES = (COMMUNITY, COLLECTION, ITEM, BUNDLE, BITSTREAM)

# the storage collections holding each type of record
COMMUNITIES_COLL = "communities"
COLLECTIONS_COLL = "collections"
ITEMS_COLL       = "items"
BUNDLES_COLL     = "bundles"
BITSTREAMS_COLL  = "bitstreams"
GROUPS_COLL      = "groups"
EPERSONS_COLL    = "epersons"
POLICIES_COLL    = "policies"

COLL_FOR_TYPE = {
    COMMUNITY:  COMMUNITIES_COLL,
    COLLECTION: COLLECTIONS_COLL,
    ITEM:       ITEMS_COLL,
    BUNDLE:     BUNDLES_COLL,
    BITSTREAM:  BITSTREAMS_COLL,
    GROUP:      GROUPS_COLL,
    EPERSON:    EPERSONS_COLL
}

# actions
READ                  = "READ"
WRITE                 = "WRITE"
DELETE                = "DELETE"
ADD                   = "ADD"
REMOVE                = "REMOVE"
ADMIN                 = "ADMIN"
DEFAULT_ITEM_READ     = "DEFAULT_ITEM_READ"
DEFAULT_BITSTREAM_READ = "DEFAULT_BITSTREAM_READ"

ACTIONS = (READ, WRITE, DELETE, ADD, REMOVE, ADMIN, DEFAULT_ITEM_READ, DEFAULT_BITSTREAM_READ)

# policy types (provenance markers)
TYPE_SUBMISSION = "TYPE_SUBMISSION"
TYPE_WORKFLOW   = "TYPE_WORKFLOW"
TYPE_CUSTOM     = "TYPE_CUSTOM"
TYPE_INHERITED  = "TYPE_INHERITED"

# well-known groups
ANONYMOUS_GROUP = "Anonymous"
ADMIN_GROUP     = "Administrator"

# the canonical content bundle
CONTENT_BUNDLE_NAME = "ORIGINAL"
