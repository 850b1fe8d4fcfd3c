"""
cnnfi CLI
=========
Command-line interface for fault specification checks and campaign analysis.

    cnnfi analyze   --results campaign.json [--num-classes 10] [--out summary.json]
    cnnfi hw-bit    --bit 3 --width 8
    cnnfi check-hw  --faults hw_faults.json [--out payload.json]
    cnnfi check-spec --spec weight_faults.json --domain weight [--layers layers.json]
"""

import argparse
import json
import logging
import sys

from cnnfi import config
from cnnfi.bits import classify_ieee754_bit, to_hardware_bit
from cnnfi.campaign import CampaignResult
from cnnfi.errors import FaultSpecError
from cnnfi.faults import DOMAINS, FaultSpec
from cnnfi.hardware import HardwareFaultCampaign

BANNER = "=" * 70


def _load_json(path):
    with open(path, 'r') as f:
        return json.load(f)


def _write_json(path, data):
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    print(f"Results written to {path}")


def _fmt_pct(value):
    return "undefined" if value is None else f"{value:.2f}%"


def cmd_analyze(args):
    print(f"Analyzing campaign results in {args.results}...")
    result = CampaignResult.from_response(_load_json(args.results), num_classes=args.num_classes)
    cls = result.classification

    print(BANNER)
    print(f"Compared samples:  {cls.compared}")
    print(f"Valid samples:     {cls.total_valid}")
    print(f"Invalid (crashed): {cls.invalid}")
    print(f"SDC:               {cls.sdc} ({cls.sdc_rate * 100:.2f}%)")
    print(f"Fault masked:      {cls.fault_masked} ({cls.masked_rate * 100:.2f}%)")
    print(BANNER)

    if result.degradation:
        print("Metric degradation (golden -> faulty):")
        for key, delta in result.degradation.items():
            print(f"  {key:<12} {delta.golden:.4f} -> {delta.faulty:.4f}  "
                  f"delta={delta.degradation:+.4f}  rel={_fmt_pct(delta.degradation_pct)}")

    if result.numeric_issues is not None and result.numeric_issues.has_issues:
        issues = result.numeric_issues
        print(f"[WARN] Numeric issues: overflow={issues.overflow_count}, "
              f"underflow={issues.underflow_count}, nan={issues.nan_count} "
              f"(attempted prediction {issues.attempted_prediction}, unreliable)")

    if args.out:
        _write_json(args.out, result.to_dict())
    return 0


def cmd_hw_bit(args):
    hw = to_hardware_bit(args.bit, args.width)
    print(f"User bit {args.bit} (LSB-first) -> hardware bit {hw} (MSB-first) in a {args.width}-bit register")
    if args.width == config.FLOAT32_WIDTH:
        print(f"IEEE-754 field: {classify_ieee754_bit(args.bit).value}")
    return 0


def cmd_check_hw(args):
    campaign = HardwareFaultCampaign.from_payload(_load_json(args.faults))
    payload = campaign.to_payload()
    print(f"[PASS] {len(campaign.filter_faults)} filter fault(s), {len(campaign.bias_faults)} bias fault(s)")
    for entry in campaign.filter_faults + campaign.bias_faults:
        where = f"[{entry.row}][{entry.col}]" if entry.is_filter else ""
        print(f"  {entry.register}{where} hw bit {entry.bit_position} (user bit {entry.user_bit}) "
              f"{entry.kind.hardware_name}")
    if args.out:
        _write_json(args.out, payload)
    return 0


def cmd_check_spec(args):
    catalog = config.load_layer_catalog(args.layers) if args.layers else None
    spec = FaultSpec.from_payload(_load_json(args.spec), domain=args.domain, catalog=catalog)
    state = "enabled" if spec.enabled else "disabled (contributes no faults)"
    print(f"[PASS] {args.domain} spec with {len(spec)} layer(s), {state}")
    for layer in spec:
        if args.domain == "weight":
            print(f"  {layer.layer_id}: {layer.kind.value} on {layer.target_type}, {len(layer.positions)} position(s)")
        else:
            print(f"  {layer.layer_id}: {layer.kind.value} at rate {layer.fault_rate}")
    if args.out:
        _write_json(args.out, spec.to_payload())
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="cnnfi", description="cnnfi: CNN fault specification and campaign analysis")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Sub-commands")

    # analyze
    p_an = subparsers.add_parser("analyze", help="Classify a campaign result (SDC / masked) and metric degradation")
    p_an.add_argument("--results", required=True, help="Campaign result JSON")
    p_an.add_argument("--num-classes", type=int, default=config.NUM_CLASSES, help="Number of output classes")
    p_an.add_argument("--out", help="Output summary JSON")

    # hw-bit
    p_bit = subparsers.add_parser("hw-bit", help="Convert an LSB-first bit index to register numbering")
    p_bit.add_argument("--bit", type=int, required=True, help="Bit index, 0 = least significant")
    p_bit.add_argument("--width", type=int, default=config.FILTER_WIDTH, choices=config.VALID_WIDTHS)

    # check-hw
    p_hw = subparsers.add_parser("check-hw", help="Validate a hardware fault request")
    p_hw.add_argument("--faults", required=True, help="JSON with filter_faults / bias_faults")
    p_hw.add_argument("--out", help="Write the validated payload")

    # check-spec
    p_spec = subparsers.add_parser("check-spec", help="Validate an activation or weight fault request")
    p_spec.add_argument("--spec", required=True, help="Fault request JSON")
    p_spec.add_argument("--domain", choices=DOMAINS, default="activation")
    p_spec.add_argument("--layers", help="Layer catalog JSON (default: LeNet-5)")
    p_spec.add_argument("--out", help="Write the normalised payload")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "analyze": cmd_analyze,
        "hw-bit": cmd_hw_bit,
        "check-hw": cmd_check_hw,
        "check-spec": cmd_check_spec,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except FaultSpecError as e:
        print(f"[ERROR] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
