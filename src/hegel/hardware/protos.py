"""Protobuf messages for the two upstream inventory services.

The message classes are built at import time from descriptors instead of
checked-in protoc output. Field names and numbers must stay in step with the
upstream .proto files, otherwise records decode with missing fields.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

STRING = _Field.TYPE_STRING
BOOL = _Field.TYPE_BOOL
INT64 = _Field.TYPE_INT64
MESSAGE = _Field.TYPE_MESSAGE

CACHER_PACKAGE = "github.com.packethost.cacher.protos.cacher"
TINK_PACKAGE = "github.com.tinkerbell.tink.protos.hardware"

CACHER_SERVICE = f"/{CACHER_PACKAGE}.Cacher"
TINK_SERVICE = f"/{TINK_PACKAGE}.HardwareService"

_pool = descriptor_pool.DescriptorPool()


def _add_message(container, package: str, name: str, fields, nested=()):
    """Append a message (and its nested messages) to a descriptor container.

    fields is a sequence of (name, number, type[, type_name][, repeated]).
    type_name is relative to the package, e.g. "Hardware.DHCP".
    """
    msg = container.add(name=name)
    for spec in fields:
        field_name, number, field_type = spec[:3]
        type_name = spec[3] if len(spec) > 3 else None
        repeated = len(spec) > 4 and spec[4]
        field = msg.field.add(
            name=field_name,
            number=number,
            type=field_type,
            label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
            json_name=field_name,
        )
        if type_name:
            field.type_name = f".{package}.{type_name}"
    for nested_name, nested_fields, nested_children in nested:
        _add_message(msg.nested_type, package, nested_name, nested_fields, nested_children)
    return msg


def _build_file(name: str, package: str, messages) -> None:
    fd = descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax="proto3")
    for msg_name, fields, nested in messages:
        _add_message(fd.message_type, package, msg_name, fields, nested)
    _pool.AddSerializedFile(fd.SerializeToString())


def _message(full_name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(full_name))


# ── Legacy (cacher) ───────────────────────────────────────────

_build_file(
    "cacher/cacher.proto",
    CACHER_PACKAGE,
    [
        ("GetRequest", [("MAC", 1, STRING), ("IP", 2, STRING), ("ID", 3, STRING)], ()),
        ("Hardware", [("JSON", 1, STRING)], ()),
    ],
)

CacherGetRequest = _message(f"{CACHER_PACKAGE}.GetRequest")
CacherHardware = _message(f"{CACHER_PACKAGE}.Hardware")


# ── Current (tink) ────────────────────────────────────────────

_DHCP = (
    "DHCP",
    [
        ("mac", 1, STRING),
        ("hostname", 2, STRING),
        ("lease_time", 4, INT64),
        ("name_servers", 5, STRING, None, True),
        ("time_servers", 6, STRING, None, True),
        ("arch", 7, STRING),
        ("uefi", 8, BOOL),
        ("iface_name", 9, STRING),
        ("ip", 10, MESSAGE, "Hardware.DHCP.IP"),
    ],
    [
        (
            "IP",
            [
                ("address", 1, STRING),
                ("netmask", 2, STRING),
                ("gateway", 3, STRING),
                ("family", 4, INT64),
            ],
            (),
        )
    ],
)

_NETBOOT = (
    "Netboot",
    [
        ("allow_pxe", 1, BOOL),
        ("allow_workflow", 2, BOOL),
        ("ipxe", 3, MESSAGE, "Hardware.Netboot.IPXE"),
        ("osie", 4, MESSAGE, "Hardware.Netboot.Osie"),
    ],
    [
        ("IPXE", [("url", 1, STRING), ("contents", 2, STRING)], ()),
        ("Osie", [("base_url", 1, STRING), ("kernel", 2, STRING), ("initrd", 3, STRING)], ()),
    ],
)

_NETWORK = (
    "Network",
    [("interfaces", 1, MESSAGE, "Hardware.Network.Interface", True)],
    [
        (
            "Interface",
            [
                ("dhcp", 1, MESSAGE, "Hardware.DHCP"),
                ("netboot", 2, MESSAGE, "Hardware.Netboot"),
            ],
            (),
        )
    ],
)

_build_file(
    "hardware/hardware.proto",
    TINK_PACKAGE,
    [
        ("GetRequest", [("mac", 1, STRING), ("ip", 2, STRING), ("id", 3, STRING)], ()),
        (
            "Hardware",
            [
                ("network", 1, MESSAGE, "Hardware.Network"),
                ("id", 2, STRING),
                ("version", 3, INT64),
                ("metadata", 4, STRING),
            ],
            [_DHCP, _NETBOOT, _NETWORK],
        ),
    ],
)

TinkGetRequest = _message(f"{TINK_PACKAGE}.GetRequest")
TinkHardware = _message(f"{TINK_PACKAGE}.Hardware")
