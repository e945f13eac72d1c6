"""
Collection catalog: every report section, declared as data.

Entity kinds are UCS Manager class ids and fields are their XML attribute
names. Order here is display order. Adding a section or a retained dataset
never touches the builder or the rule engine.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

from .errors import ConfigurationError
from .schema import FieldFilter, FilterOp, SectionDefinition, SortKey, SortOrder

# Lower rank sorts first. Supplied here rather than inferred from the data.
FAULT_SEVERITY_RANK: Dict[str, int] = {
    "critical": 0,
    "major": 1,
    "minor": 2,
    "warning": 3,
    "condition": 4,
    "info": 5,
    "cleared": 6,
}


def _section(
    title: str,
    group: str,
    subtab: str,
    kind: str,
    fields: str,
    *,
    child: Optional[str] = None,
    where: Sequence[FieldFilter] = (),
    sort: Sequence[Union[str, SortKey]] = (),
    order: SortOrder = SortOrder.ASCENDING,
    retain: Optional[str] = None,
    render: bool = True,
) -> SectionDefinition:
    return SectionDefinition(
        title=title,
        tab_group=group,
        subtab=subtab,
        entity_kind=kind,
        child_kind=child,
        fields=tuple(fields.split()),
        filters=tuple(where),
        sort=tuple(SortKey(field=s) if isinstance(s, str) else s for s in sort),
        sort_order=order,
        retain_as=retain,
        render=render,
    )


def _eq(field: str, value) -> FieldFilter:
    return FieldFilter(field=field, op=FilterOp.EQ, value=value)


def _ne(field: str, value) -> FieldFilter:
    return FieldFilter(field=field, op=FilterOp.NE, value=value)


def _in(field: str, *values) -> FieldFilter:
    return FieldFilter(field=field, op=FilterOp.IN, value=list(values))


def _num(field: str) -> SortKey:
    return SortKey(field=field, numeric=True)


_PORT_ORDER = ("switchId", _num("slotId"), _num("portId"))
_EQUIPPED = _eq("presence", "equipped")
_INSTANCE = _eq("type", "instance")


CATALOG = (
    # --- System ---
    _section("UCS System", "System", "Overview", "topSystem",
             "name address mode currentTime uptime site"),
    _section("Cluster State", "System", "Overview", "mgmtEntity",
             "id leadership state chassisDeviceIo haReadiness haReady",
             sort=("id",)),
    _section("Management Interfaces", "System", "Overview", "networkElement",
             "id oobIfIp oobIfMask oobIfGw inbandIfIp",
             sort=("id",)),
    _section("DNS Servers", "System", "Services", "commDnsProvider",
             "name descr", retain="dns_servers"),
    _section("NTP Servers", "System", "Services", "commNtpProvider",
             "name descr", retain="ntp_servers"),
    _section("Time Zone", "System", "Services", "commDateTime",
             "timezone adminState"),
    _section("Telnet", "System", "Services", "commTelnet",
             "adminState port", retain="telnet"),
    _section("SNMP", "System", "Services", "commSnmp",
             "adminState sysContact sysLocation"),
    _section("Syslog Destinations", "System", "Services", "commSyslogClient",
             "name adminState hostname severity forwardingFacility",
             sort=("name",)),
    _section("Call Home", "System", "Services", "callhomeEp",
             "adminState alertThrottlingAdminState", retain="call_home"),
    _section("Licenses", "System", "Licensing", "licenseInstance",
             "scope feature absQuant usedQuant defQuant gracePeriodUsed operState",
             sort=("scope", "feature"), retain="ucs_licenses"),
    _section("Backup Policies", "System", "Backup", "mgmtBackupPolicy",
             "name adminState host proto schedule"),
    _section("Config Export Policies", "System", "Backup", "mgmtCfgExportPolicy",
             "name adminState host proto schedule"),
    _section("Local Users", "System", "Authentication", "aaaUser",
             "name firstName lastName email expires",
             sort=("name",)),
    _section("Authentication Domains", "System", "Authentication", "aaaDomain",
             "name sessionTimeout refreshPeriod",
             sort=("name",)),
    _section("LDAP Providers", "System", "Authentication", "aaaLdapProvider",
             "name port rootdn basedn order"),
    _section("RADIUS Providers", "System", "Authentication", "aaaRadiusProvider",
             "name authPort timeout retries order"),
    _section("TACACS+ Providers", "System", "Authentication", "aaaTacacsPlusProvider",
             "name port timeout retries order"),

    # --- Equipment ---
    _section("Fabric Interconnects", "Equipment", "Fabric Interconnects", "networkElement",
             "id model vendor serial oobIfIp operability totalMemory",
             sort=("id",)),
    _section("Fabric Interconnect Modules", "Equipment", "Fabric Interconnects", "equipmentSwitchCard",
             "dn id model serial numPorts state",
             sort=("dn",)),
    _section("Configured Ports", "Equipment", "Fabric Interconnects", "etherPhysPort",
             "switchId slotId portId ifRole adminState operState operSpeed xcvrType peerDn",
             where=[_ne("ifRole", "unknown")], sort=_PORT_ORDER),
    _section("Unconfigured Ports", "Equipment", "Fabric Interconnects", "etherPhysPort",
             "switchId slotId portId adminState operState xcvrType",
             where=[_eq("ifRole", "unknown")], sort=_PORT_ORDER),
    _section("Chassis", "Equipment", "Chassis", "equipmentChassis",
             "id model serial operState operability power thermal configState",
             sort=(_num("id"),)),
    _section("IO Modules", "Equipment", "Chassis", "equipmentIOCard",
             "dn chassisId id side model serial operState discovery",
             sort=(_num("chassisId"), "id")),
    _section("IOM Backplane Ports", "Equipment", "Chassis", "etherServerIntFIo",
             "dn chassisId portId operState peerDn",
             sort=("dn",)),
    _section("IOM Fabric Ports", "Equipment", "Chassis", "etherSwitchIntFIo",
             "dn chassisId portId operState peerDn",
             sort=("dn",)),
    _section("Fabric Extenders", "Equipment", "Chassis", "equipmentFex",
             "id switchId model serial operState",
             sort=(_num("id"),)),
    _section("Power Supplies", "Equipment", "Power & Cooling", "equipmentPsu",
             "dn id model serial operability power voltage",
             where=[_EQUIPPED], sort=("dn",)),
    _section("Fan Modules", "Equipment", "Power & Cooling", "equipmentFanModule",
             "dn id model serial operability thermal",
             where=[_EQUIPPED], sort=("dn",)),
    _section("Transceivers", "Equipment", "Fabric Interconnects", "equipmentXcvr",
             "dn type model vendor serial",
             sort=("dn",)),
    _section("Blade Servers", "Equipment", "Servers", "computeBlade",
             "chassisId slotId model serial numOfCpus numOfCores totalMemory "
             "operState operPower association assignedToDn",
             sort=(_num("chassisId"), _num("slotId"))),
    _section("Rack Servers", "Equipment", "Servers", "computeRackUnit",
             "id model serial numOfCpus numOfCores totalMemory "
             "operState operPower association assignedToDn",
             sort=(_num("id"),)),
    _section("Adapters", "Equipment", "Servers", "adaptorUnit",
             "dn model serial operState",
             sort=("dn",)),
    _section("Processors", "Equipment", "Servers", "processorUnit",
             "dn socketDesignation model cores threads speed operState",
             where=[_EQUIPPED], sort=("dn",)),
    _section("Memory", "Equipment", "Servers", "memoryUnit",
             "dn location capacity clock type operState",
             where=[_EQUIPPED], sort=("dn",)),
    _section("Storage Controllers", "Equipment", "Storage", "storageController",
             "dn model vendor type pciSlot operState",
             sort=("dn",)),
    _section("Local Disks", "Equipment", "Storage", "storageLocalDisk",
             "dn model vendor serial size diskState operability",
             where=[_EQUIPPED], sort=("dn",)),
    _section("Virtual Drives", "Equipment", "Storage", "storageVirtualDrive",
             "dn name size type operState",
             sort=("dn",)),
    _section("GPUs", "Equipment", "Servers", "graphicsCard",
             "dn model vendor serial",
             sort=("dn",)),
    _section("Chassis Discovery Policy", "Equipment", "Policies", "computeChassisDiscPolicy",
             "action linkAggregationPref rebalance multicastHwHash",
             retain="chassis_discovery_policy"),
    _section("Power Redundancy Policy", "Equipment", "Policies", "computePsuPolicy",
             "redundancy descr", retain="power_redundancy_policy"),

    # --- Firmware ---
    _section("UCS Manager", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "system")]),
    _section("Fabric Interconnect Firmware", "Firmware", "Running", "firmwareRunning",
             "dn type version packageVersion",
             where=[_in("type", "switch-kernel", "switch-software")], sort=("dn",)),
    _section("IO Module Firmware", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "iocard")], sort=("dn",)),
    _section("Server Controller Firmware", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "blade-controller")], sort=("dn",)),
    _section("Server BIOS Firmware", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "blade-bios")], sort=("dn",)),
    _section("Adapter Firmware", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "adaptor")], sort=("dn",)),
    _section("Storage Controller Firmware", "Firmware", "Running", "firmwareRunning",
             "dn version packageVersion",
             where=[_eq("type", "storage-controller")], sort=("dn",)),
    _section("Firmware Packages", "Firmware", "Packages", "firmwareDistributable",
             "name version type",
             sort=("version", "name"), order=SortOrder.DESCENDING),
    _section("Host Firmware Policies", "Firmware", "Packages", "firmwareComputeHostPack",
             "dn name bladeBundleVersion rackBundleVersion mode",
             sort=("dn",)),
    _section("Infrastructure Firmware", "Firmware", "Packages", "firmwareInfraPack",
             "dn name infraBundleVersion"),

    # --- Servers ---
    _section("Service Profiles", "Servers", "Service Profiles", "lsServer",
             "dn name assocState operState pnDn srcTemplName maintPolicyName "
             "hostFwPolicyName bootPolicyName biosProfileName",
             where=[_INSTANCE], sort=("dn",)),
    _section("Associated Service Profiles", "Servers", "Service Profiles", "lsServer",
             "dn name maintPolicyName",
             where=[_INSTANCE, _eq("assocState", "associated")], sort=("dn",),
             retain="associated_service_profiles", render=False),
    _section("Service Profile Templates", "Servers", "Service Profiles", "lsServer",
             "dn name type maintPolicyName hostFwPolicyName bootPolicyName",
             where=[_in("type", "initial-template", "updating-template")], sort=("dn",)),
    _section("Service Profile vNICs", "Servers", "Service Profiles", "vnicEther",
             "dn name addr switchId nwTemplName mtu adaptorProfileName",
             sort=("dn",)),
    _section("Service Profile vHBAs", "Servers", "Service Profiles", "vnicFc",
             "dn name addr switchId nwTemplName",
             sort=("dn",)),
    _section("Maintenance Policies", "Servers", "Policies", "lsmaintMaintPolicy",
             "dn name uptimeDisr schedName",
             sort=("dn",), retain="maintenance_policies"),
    _section("Boot Policies", "Servers", "Policies", "lsbootPolicy",
             "dn name bootMode rebootOnUpdate enforceVnicName",
             sort=("dn",)),
    _section("BIOS Policies", "Servers", "Policies", "biosVProfile",
             "dn name rebootOnUpdate",
             sort=("dn",)),
    _section("Local Disk Policies", "Servers", "Policies", "storageLocalDiskConfigPolicy",
             "dn name mode protectConfig",
             sort=("dn",)),
    _section("Scrub Policies", "Servers", "Policies", "computeScrubPolicy",
             "dn name diskScrub biosSettingsScrub",
             sort=("dn",)),
    _section("Power Control Policies", "Servers", "Policies", "powerPolicy",
             "dn name prio",
             sort=("dn",)),
    _section("Server Pools", "Servers", "Pools", "computePool",
             "dn name size assigned",
             sort=("dn",)),
    _section("UUID Pools", "Servers", "Pools", "uuidpoolPool",
             "dn name prefix size assigned assignmentOrder",
             sort=("dn",)),

    # --- LAN ---
    _section("Uplink Ports", "LAN", "Uplinks", "fabricEthLanEp",
             "switchId slotId portId adminState operState operSpeed",
             sort=_PORT_ORDER),
    _section("Uplink Port Channels", "LAN", "Uplinks", "fabricEthLanPc",
             "dn switchId portId name adminState operState operSpeed",
             sort=("switchId", _num("portId")), retain="uplink_port_channels"),
    _section("Uplink Port Channel Members", "LAN", "Uplinks", "fabricEthLanPcEp",
             "dn switchId slotId portId operState",
             sort=("dn",)),
    _section("Server Ports", "LAN", "Uplinks", "fabricDceSwSrvEp",
             "switchId slotId portId operState",
             sort=_PORT_ORDER),
    _section("VLANs", "LAN", "VLANs", "fabricVlan",
             "id name switchId sharing defaultNet",
             sort=(_num("id"),)),
    _section("VLAN Groups", "LAN", "VLANs", "fabricNetGroup",
             "dn name",
             sort=("dn",)),
    _section("vNIC Templates", "LAN", "Policies", "vnicLanConnTempl",
             "dn name templType switchId mtu identPoolName qosPolicyName",
             sort=("dn",), retain="vnic_templates"),
    _section("LAN Connectivity Policies", "LAN", "Policies", "vnicLanConnPolicy",
             "dn name",
             sort=("dn",)),
    _section("Network Control Policies", "LAN", "Policies", "nwctrlDefinition",
             "dn name cdp macRegisterMode uplinkFailAction",
             sort=("dn",)),
    _section("QoS System Classes", "LAN", "QoS", "qosclassEthClassified",
             "priority adminState cos weight mtu drop"),
    _section("QoS Policies", "LAN", "QoS", "epqosDefinition",
             "dn name policyOwner",
             sort=("dn",)),
    _section("MAC Pools", "LAN", "Pools", "macpoolPool",
             "dn name size assigned assignmentOrder",
             sort=("dn",)),
    _section("IP Pools", "LAN", "Pools", "ippoolPool",
             "dn name size assigned",
             sort=("dn",)),

    # --- SAN ---
    _section("FC Uplink Ports", "SAN", "Uplinks", "fabricFcSanEp",
             "switchId slotId portId adminState operState",
             sort=_PORT_ORDER),
    _section("FC Port Channels", "SAN", "Uplinks", "fabricFcSanPc",
             "dn switchId portId name operState",
             sort=("switchId", _num("portId"))),
    _section("VSANs", "SAN", "VSANs", "fabricVsan",
             "id name fcoeVlan switchId zoningState",
             sort=(_num("id"),)),
    _section("vHBA Templates", "SAN", "Policies", "vnicSanConnTempl",
             "dn name templType switchId identPoolName qosPolicyName",
             sort=("dn",), retain="vhba_templates"),
    _section("SAN Connectivity Policies", "SAN", "Policies", "vnicSanConnPolicy",
             "dn name",
             sort=("dn",)),
    _section("WWNN Pools", "SAN", "Pools", "fcpoolInitiators",
             "dn name size assigned",
             where=[_eq("purpose", "node-wwn-assignment")], sort=("dn",)),
    _section("WWPN Pools", "SAN", "Pools", "fcpoolInitiators",
             "dn name size assigned",
             where=[_eq("purpose", "port-wwn-assignment")], sort=("dn",)),

    # --- Faults & logs ---
    _section("Faults", "Faults", "Faults", "faultInst",
             "severity code id created dn descr ack",
             sort=(SortKey(field="severity", rank=FAULT_SEVERITY_RANK),
                   SortKey(field="created", order=SortOrder.DESCENDING)),
             retain="faults"),
    _section("Unacknowledged Faults", "Faults", "Faults", "faultInst",
             "severity code created dn descr",
             where=[_eq("ack", "no")],
             sort=(SortKey(field="severity", rank=FAULT_SEVERITY_RANK),
                   SortKey(field="created", order=SortOrder.DESCENDING))),
    _section("Events", "Faults", "Logs", "eventRecord",
             "created id user descr",
             sort=("created",), order=SortOrder.DESCENDING),
    _section("Audit Log", "Faults", "Logs", "aaaModLR",
             "created user ind affected descr",
             sort=("created",), order=SortOrder.DESCENDING),

    # --- Statistics ---
    _section("Chassis Power", "Statistics", "Power", "equipmentChassisStats",
             "dn inputPower outputPower",
             sort=("dn",)),
    _section("Server Power", "Statistics", "Power", "computeMbPowerStats",
             "dn consumedPower inputVoltage inputCurrent",
             sort=("dn",)),
    _section("Server Temperature", "Statistics", "Temperature", "computeMbTempStats",
             "dn fmTempSenIo fmTempSenRear",
             sort=("dn",)),
    _section("Fabric Interconnect Load", "Statistics", "Fabric Interconnects", "swSystemStats",
             "dn load memAvailable memCached",
             sort=("dn",)),
    _section("Uplink Port Channel Loss", "Statistics", "Ethernet", "fabricEthLanPc",
             "parentDn singleCollision multiCollision lateCollision excessCollision carrierSense giants",
             child="etherLossStats"),
    _section("Uplink Port Channel Errors", "Statistics", "Ethernet", "fabricEthLanPc",
             "parentDn align fcs xmit rcv underSize outDiscard",
             child="etherErrStats"),
    _section("FC Uplink Errors", "Statistics", "Fibre Channel", "fabricFcSanEp",
             "parentDn crcRx discardRx discardTx linkFailures signalLosses syncLosses",
             child="fcErrStats"),
)


def retained_names(catalog: Iterable[SectionDefinition]) -> Set[str]:
    return {s.retain_as for s in catalog if s.retain_as}


def validate_catalog(catalog: Sequence[SectionDefinition], rules: Iterable = ()) -> None:
    """Check catalog invariants and that every rule input is retained somewhere.

    *rules* is any iterable of objects with ``description`` and ``inputs``.
    Raises ConfigurationError listing every problem found.
    """
    problems: List[str] = []
    seen_titles: Set[str] = set()
    seen_retained: Set[str] = set()
    for s in catalog:
        if s.title in seen_titles:
            problems.append(f"duplicate section title {s.title!r}")
        seen_titles.add(s.title)
        if not s.entity_kind:
            problems.append(f"section {s.title!r} has no entity kind")
        if not s.fields:
            problems.append(f"section {s.title!r} has no fields")
        if s.retain_as:
            if s.retain_as in seen_retained:
                problems.append(f"dataset {s.retain_as!r} retained by more than one section")
            seen_retained.add(s.retain_as)
    for rule in rules:
        for name in rule.inputs:
            if name not in seen_retained:
                problems.append(f"rule {rule.description!r} reads unknown dataset {name!r}")
    if problems:
        raise ConfigurationError("invalid catalog: " + "; ".join(problems))
