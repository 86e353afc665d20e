"""
The data model for a bulk access control request.

A request is read from a JSON document of the form:

.. code-block:: json

   {
     "item": {
       "mode": "replace",
       "accessConditions": [ { "name": "openaccess" } ]
     },
     "bitstream": {
       "mode": "add",
       "constraints": { "uuid": [ "4f6e2b1c-..." ] },
       "accessConditions": [
         { "name": "embargo", "startDate": "2030-01-01" }
       ]
     }
   }

Dates are normalized to UTC calendar dates.  Parsing only checks the shape of the document; the
semantic checks (valid modes, known condition names, allowed dates) are done by
:py:class:`~dspace.authz.bulkaccess.control.BulkAccessControl`.
"""
import json
from collections.abc import Mapping
from datetime import date
from io import TextIOBase
from pathlib import Path
from typing import List, Union

from ..exceptions import StructuralError
from ..utils.dates import parse_date, format_date

ADD_MODE = "add"
REPLACE_MODE = "replace"
MODES = (ADD_MODE, REPLACE_MODE)

def _get_list(data: Mapping, prop: str, where: str) -> list:
    val = data.get(prop)
    if val is None:
        return []
    if not isinstance(val, list):
        raise StructuralError("%s: %s must be a list" % (where, prop))
    return val

def _get_str(data: Mapping, prop: str, where: str) -> str:
    val = data.get(prop)
    if val is not None and not isinstance(val, str):
        raise StructuralError("%s: %s must be a string" % (where, prop))
    return val

class AccessCondition(object):
    """
    a request to apply a named access condition, optionally with a start and/or end date
    """

    def __init__(self, name: str, description: str=None, start_date: date=None, end_date: date=None):
        self.name = name
        self.description = description
        self.start_date = parse_date(start_date)
        self.end_date = parse_date(end_date)

    @classmethod
    def from_dict(cls, data: Mapping) -> "AccessCondition":
        if not isinstance(data, Mapping):
            raise StructuralError("accessConditions: each access condition must be an object")
        name = _get_str(data, 'name', 'accessCondition')
        if not name:
            raise StructuralError("accessCondition: name must be provided")
        try:
            return cls(name, _get_str(data, 'description', name),
                       data.get('startDate'), data.get('endDate'))
        except ValueError as ex:
            raise StructuralError("accessCondition %s: bad date: %s" % (name, str(ex)))

    def to_dict(self) -> Mapping:
        out = { "name": self.name }
        if self.description is not None:
            out['description'] = self.description
        if self.start_date:
            out['startDate'] = format_date(self.start_date)
        if self.end_date:
            out['endDate'] = format_date(self.end_date)
        return out

    def __str__(self):
        out = self.name
        if self.start_date:
            out += ", start_date=" + format_date(self.start_date)
        if self.end_date:
            out += ", end_date=" + format_date(self.end_date)
        return out

    def __repr__(self):
        return "<AccessCondition %s>" % str(self)


class AccessConditionItem(object):
    """
    the access conditions to apply to items along with the mode of application
    """

    def __init__(self, mode: str, access_conditions: List[AccessCondition]=None):
        self.mode = mode
        self.access_conditions = list(access_conditions or [])

    @classmethod
    def _parse(cls, data: Mapping, where: str):
        if not isinstance(data, Mapping):
            raise StructuralError("%s node must be an object" % where)
        mode = _get_str(data, 'mode', where)
        conds = [AccessCondition.from_dict(c) for c in _get_list(data, 'accessConditions', where)]
        return mode, conds

    @classmethod
    def from_dict(cls, data: Mapping) -> "AccessConditionItem":
        return cls(*cls._parse(data, "item"))

    def to_dict(self) -> Mapping:
        return { "mode": self.mode, "accessConditions": [c.to_dict() for c in self.access_conditions] }


class BitstreamConstraint(object):
    """
    a restriction of bitstream access conditions to particular bitstreams
    """

    def __init__(self, uuid: List[str]=None):
        self.uuid = [str(u) for u in (uuid or [])]

    @classmethod
    def from_dict(cls, data: Mapping) -> "BitstreamConstraint":
        if not isinstance(data, Mapping):
            raise StructuralError("bitstream: constraints node must be an object")
        return cls(_get_list(data, 'uuid', 'constraints'))

    def __bool__(self):
        return len(self.uuid) > 0


class AccessConditionBitstream(AccessConditionItem):
    """
    the access conditions to apply to bitstreams along with the mode of application and the optional
    constraints on which bitstreams they apply to
    """

    def __init__(self, mode: str, access_conditions: List[AccessCondition]=None,
                 constraints: BitstreamConstraint=None):
        super(AccessConditionBitstream, self).__init__(mode, access_conditions)
        self.constraints = constraints

    @property
    def constraint_uuids(self) -> List[str]:
        """
        the identifiers of the bitstreams the conditions are restricted to; empty if unrestricted
        """
        if not self.constraints:
            return []
        return list(self.constraints.uuid)

    @classmethod
    def from_dict(cls, data: Mapping) -> "AccessConditionBitstream":
        mode, conds = cls._parse(data, "bitstream")
        cnsts = None
        if data.get('constraints') is not None:
            cnsts = BitstreamConstraint.from_dict(data['constraints'])
        return cls(mode, conds, cnsts)

    def to_dict(self) -> Mapping:
        out = super(AccessConditionBitstream, self).to_dict()
        if self.constraints is not None:
            out['constraints'] = { "uuid": list(self.constraints.uuid) }
        return out


class BulkAccessControlInput(object):
    """
    a complete bulk access control request
    """

    def __init__(self, item: AccessConditionItem=None, bitstream: AccessConditionBitstream=None):
        self.item = item
        self.bitstream = bitstream

    @classmethod
    def from_dict(cls, data: Mapping) -> "BulkAccessControlInput":
        """
        create the request from its JSON-parsed form
        :raises StructuralError:  if the data is not shaped like a bulk access control request
        """
        if not isinstance(data, Mapping):
            raise StructuralError("Bulk access control input must be a JSON object")
        item = None
        bitstream = None
        if data.get('item') is not None:
            item = AccessConditionItem.from_dict(data['item'])
        if data.get('bitstream') is not None:
            bitstream = AccessConditionBitstream.from_dict(data['bitstream'])
        return cls(item, bitstream)

    @classmethod
    def from_json(cls, source: Union[str, TextIOBase]) -> "BulkAccessControlInput":
        """
        parse the request from a JSON string or an open (text) stream
        :raises StructuralError:  if the input is not valid JSON or not shaped like a request
        """
        try:
            if isinstance(source, str):
                data = json.loads(source)
            else:
                data = json.load(source)
        except ValueError as ex:
            raise StructuralError("Error parsing json file: " + str(ex))
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, filepath) -> "BulkAccessControlInput":
        """
        read the request from the JSON file at the given path
        :raises StructuralError:  if the file cannot be read or parsed
        """
        filepath = Path(filepath)
        try:
            with open(filepath) as fd:
                return cls.from_json(fd)
        except OSError as ex:
            raise StructuralError("Error reading file, the file couldn't be found for filename: %s (%s)"
                                  % (filepath, ex.strerror))

    def to_dict(self) -> Mapping:
        out = {}
        if self.item:
            out['item'] = self.item.to_dict()
        if self.bitstream:
            out['bitstream'] = self.bitstream.to_dict()
        return out
