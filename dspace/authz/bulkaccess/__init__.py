"""
Bulk access control:  applying access conditions to the items and bitstreams found under a set of
communities, collections, and items.

.. code-block::

   from dspace.authz.bulkaccess import BulkAccessControl

   bac = BulkAccessControl(config)
   result = bac.run(context, [collid], "access.json")
   if result.status != SUCCESS:
       ...
"""
from .model import (AccessCondition, AccessConditionItem, AccessConditionBitstream, BitstreamConstraint,
                    BulkAccessControlInput, ADD_MODE, REPLACE_MODE)
from .control import (BulkAccessControl, BulkAccessControlResult, Applied, Skipped, Failed,
                      SUCCESS, VALIDATION_FAILURE, PARTIAL_FAILURE)
