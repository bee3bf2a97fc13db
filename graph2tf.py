#!/usr/bin/env python3
"""
graph2tf.py - Generate Terraform from an InfraQ resource graph

One resource block per node, in node order, separated by blank lines.
Values come from the node's config with catalog defaults applied by
catalog.resolve(); missing or odd values never raise, the output is
always complete text.

Kinds:
    ec2    -> aws_instance        (security_groups reference each sg block)
    s3     -> aws_s3_bucket
    vpc    -> aws_vpc
    sg     -> aws_security_group
    subnet -> nothing yet (strict=True raises UnmappedKindError instead)

The HCL check parses output back with python-hcl2 and reports security
group references that point at no emitted block.

Requirements:
    pip install python-hcl2
"""

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

import hcl2

from catalog import (
    DEFAULT_TAGS,
    EC2,
    S3,
    SG,
    VPC,
    Ec2Config,
    S3Config,
    SgConfig,
    VpcConfig,
    kind_info,
    resolve,
)
from errors import GeneratedSyntaxError, UnmappedKindError
from graph_store import Connection, ResourceNode

logger = logging.getLogger(__name__)

INDENT = "  "


# =============================================================================
# HCL HELPERS
# =============================================================================

def hcl_str(value: str) -> str:
    """Quote a value as an HCL string literal."""
    s = str(value)
    s = s.replace("\\", "\\\\").replace('"', '\\"')
    s = s.replace("\r", "").replace("\n", "\\n")
    s = s.replace("${", "$${").replace("%{", "%%{")
    return f'"{s}"'


def hcl_bool(value: bool) -> str:
    return "true" if value else "false"


def valid_tags_body(body: List[str]) -> bool:
    """True when the lines parse as the body of one tags map and nothing else."""
    text = "tags = {\n" + "\n".join(body) + "\n}\n"
    try:
        parsed = hcl2.loads(text)
    except Exception:
        return False
    if [_unquote(k) for k in parsed] != ["tags"]:
        return False
    value = next(iter(parsed.values()))
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    return isinstance(value, dict)


def tags_block(tags: str) -> List[str]:
    # tags is the raw body of the map, e.g. 'Name = "web"'
    body = [line.strip() for line in tags.splitlines() if line.strip()]
    if not valid_tags_body(body):
        logger.warning("Ignoring malformed tags %r, using %r", tags, DEFAULT_TAGS)
        body = [DEFAULT_TAGS]
    lines = [f"{INDENT}tags = {{"]
    lines += [f"{INDENT * 2}{line}" for line in body]
    lines.append(f"{INDENT}}}")
    return lines


def sg_reference(sg_id: str) -> str:
    return f"{kind_info(SG).terraform_type}.{sg_id}.id"


def resource_block(terraform_type: str, name: str, body: List[str]) -> str:
    lines = [f"resource {hcl_str(terraform_type)} {hcl_str(name)} {{"]
    lines += body
    lines.append("}")
    return "\n".join(lines) + "\n"


# =============================================================================
# BLOCKS
# =============================================================================

def ec2_body(cfg: Ec2Config) -> List[str]:
    refs = ", ".join(sg_reference(i) for i in cfg.security_group_ids)
    return [
        f"{INDENT}ami           = {hcl_str(cfg.ami)}",
        f"{INDENT}instance_type = {hcl_str(cfg.instance_type)}",
        "",
        f"{INDENT}subnet_id     = {hcl_str(cfg.subnet_id)}",
        f"{INDENT}security_groups = [{refs}]",
        "",
        *tags_block(cfg.tags),
    ]


def s3_body(cfg: S3Config) -> List[str]:
    return [
        f"{INDENT}bucket = {hcl_str(cfg.bucket_name)}",
        f'{INDENT}acl    = "private"',
        "",
        f"{INDENT}versioning {{",
        f"{INDENT * 2}enabled = {hcl_bool(cfg.versioning)}",
        f"{INDENT}}}",
        "",
        *tags_block(cfg.tags),
    ]


def vpc_body(cfg: VpcConfig) -> List[str]:
    return [
        f"{INDENT}cidr_block = {hcl_str(cfg.cidr_block)}",
        "",
        f"{INDENT}enable_dns_support   = {hcl_bool(cfg.enable_dns_support)}",
        f"{INDENT}enable_dns_hostnames = {hcl_bool(cfg.enable_dns_hostnames)}",
        "",
        *tags_block(cfg.tags),
    ]


def sg_body(cfg: SgConfig) -> List[str]:
    return [
        f"{INDENT}name        = {hcl_str(cfg.name)}",
        f"{INDENT}description = {hcl_str(cfg.description)}",
        "",
        f"{INDENT}vpc_id      = {hcl_str(cfg.vpc_id)}",
        "",
        *tags_block(cfg.tags),
    ]


BODY_BUILDERS: Dict[str, Callable] = {
    EC2: ec2_body,
    S3: s3_body,
    VPC: vpc_body,
    SG: sg_body,
}


# =============================================================================
# GENERATION
# =============================================================================

def render_node(node: ResourceNode, strict: bool = False) -> Optional[str]:
    """Render one node's block, or None for kinds with no block."""
    builder = BODY_BUILDERS.get(node.kind)
    if builder is None:
        if strict:
            raise UnmappedKindError(f"{node.id}: no Terraform block for kind {node.kind!r}")
        logger.debug("Skipping %s: no Terraform block for %s", node.id, node.kind)
        return None

    cfg = resolve(node.kind, node.config)
    return resource_block(kind_info(node.kind).terraform_type, node.id, builder(cfg))


def generate(
    nodes: Iterable[ResourceNode],
    edges: Iterable[Connection] = (),
    strict: bool = False,
) -> str:
    """Translate a graph snapshot to Terraform text.

    edges is accepted for symmetry with the store; connections are already
    reflected in each ec2 node's securityGroupIds.
    """
    blocks = []
    for node in nodes:
        block = render_node(node, strict=strict)
        if block is not None:
            blocks.append(block)
    return "\n".join(blocks)


# =============================================================================
# HCL CHECK
# =============================================================================

def _unquote(s: str) -> str:
    return s[1:-1] if len(s) >= 2 and s[0] == s[-1] == '"' else s


def parse_resources(text: str) -> Dict[str, dict]:
    """Parse generated text; return address -> attributes."""
    try:
        parsed = hcl2.loads(text)
    except Exception as e:
        raise GeneratedSyntaxError(f"generated text is not valid HCL: {e}") from e

    resources: Dict[str, dict] = {}
    for resource_block in parsed.get("resource", []):
        for resource_type, instances in resource_block.items():
            if not isinstance(instances, dict):
                continue
            for name, attrs in instances.items():
                if isinstance(attrs, list) and attrs:
                    attrs = attrs[0]
                if not isinstance(attrs, dict):
                    continue
                resources[f"{_unquote(resource_type)}.{_unquote(name)}"] = attrs
    return resources


def check_syntax(text: str) -> List[str]:
    """Return the resource addresses in the text; raise if it does not parse."""
    return list(parse_resources(text))


# Matches both "${aws_security_group.web.id}" and bare aws_security_group.web.id
SG_REF_RE = re.compile(r'(aws_security_group\.[A-Za-z_][A-Za-z0-9_-]*)\.id\b')


def sg_address(value) -> Optional[str]:
    """Address of the security group an instance reference points at."""
    if not isinstance(value, str):
        return None
    match = SG_REF_RE.search(value)
    return match.group(1) if match else None


def dangling_references(text: str) -> List[str]:
    """List security group references with no matching block in the text."""
    resources = parse_resources(text)
    instance_type = kind_info(EC2).terraform_type

    dangling = []
    for address, attrs in resources.items():
        if not address.startswith(instance_type + "."):
            continue
        groups = attrs.get("security_groups") or []
        if not isinstance(groups, list):
            groups = [groups]
        for value in groups:
            ref = sg_address(value)
            if ref and ref not in resources:
                dangling.append(f"{address} -> {ref}")
    return dangling
