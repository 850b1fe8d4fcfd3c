"""
Tier 2 Verification: Hardware Register Faults
=============================================
Filter (8-bit, 5x5) and bias (16-bit) register faults for the VHDL design.

Contract Checked:
1. Person-facing bits are LSB-first; stored/sent bits are MSB-first.
2. Out-of-range bits, rows and cols are rejected with the field named.
3. Raw request entries with missing/NaN fields are rejected by field.
4. random_noise has no meaning for a fixed-point register.
"""

import sys
import os
import math
import pytest

# Setup path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from cnnfi.errors import MissingFieldError, RangeError, ValidationError
from cnnfi.faults import FaultKind
from cnnfi.hardware import HardwareFaultCampaign, HardwareRegister


def test_filter_fault_converts_to_hardware_numbering():
    campaign = HardwareFaultCampaign()
    entry = campaign.add_filter_fault("FMAP_1", 2, 3, bit=0)
    assert entry.bit_position == 7      # LSB of an 8-bit register
    assert entry.user_bit == 0
    assert entry.width == 8
    assert entry.to_payload() == {
        "filter_name": "FMAP_1", "row": 2, "col": 3, "bit_position": 7, "fault_type": "bitflip",
    }


def test_bias_fault_converts_to_hardware_numbering():
    campaign = HardwareFaultCampaign()
    entry = campaign.add_bias_fault("BIAS_VAL_2", bit=15, fault_type="stuck_at_1")
    assert entry.bit_position == 0      # MSB of a 16-bit register
    assert entry.to_payload() == {"bias_name": "BIAS_VAL_2", "bit_position": 0, "fault_type": "stuck_at_1"}


def test_filter_bit_8_rejected():
    campaign = HardwareFaultCampaign()
    with pytest.raises(RangeError) as exc:
        campaign.add_filter_fault("FMAP_1", 0, 0, bit=8)
    assert exc.value.field == "bit_position"
    with pytest.raises(RangeError):
        campaign.add_filter_fault("FMAP_1", 0, 0, bit=8, hardware_numbered=True)
    assert len(campaign) == 0


def test_bias_accepts_full_16_bit_range():
    campaign = HardwareFaultCampaign()
    campaign.add_bias_fault("BIAS_VAL_1", bit=15, hardware_numbered=True)
    with pytest.raises(RangeError):
        campaign.add_bias_fault("BIAS_VAL_1", bit=16, hardware_numbered=True)
    assert len(campaign.bias_faults) == 1


@pytest.mark.parametrize("row,col,field", [(5, 0, "row"), (0, 5, "col"), (-1, 0, "row")])
def test_filter_row_col_bounds(row, col, field):
    campaign = HardwareFaultCampaign()
    with pytest.raises(RangeError) as exc:
        campaign.add_filter_fault("FMAP_1", row, col, bit=0)
    assert exc.value.field == field


def test_unknown_register():
    campaign = HardwareFaultCampaign()
    with pytest.raises(ValidationError) as exc:
        campaign.add_filter_fault("FMAP_9", 0, 0, bit=0)
    assert exc.value.field == "filter_name"
    with pytest.raises(ValidationError) as exc:
        campaign.add_bias_fault("FMAP_1", bit=0)
    assert exc.value.field == "bias_name"


def test_random_noise_rejected_for_registers():
    campaign = HardwareFaultCampaign()
    with pytest.raises(ValidationError) as exc:
        campaign.add_bias_fault("BIAS_VAL_1", bit=0, fault_type=FaultKind.RANDOM_NOISE)
    assert exc.value.field == "fault_type"
    assert len(campaign) == 0


def test_add_entry_missing_fields():
    campaign = HardwareFaultCampaign()
    with pytest.raises(MissingFieldError) as exc:
        campaign.add_entry({"filter_name": "FMAP_1", "row": 0, "col": math.nan,
                            "bit_position": 0, "fault_type": "bitflip"})
    assert exc.value.field == "col"
    with pytest.raises(MissingFieldError) as exc:
        campaign.add_entry({"bias_name": "BIAS_VAL_1", "fault_type": "bitflip"})
    assert exc.value.field == "bit_position"


def test_payload_round_trip_keeps_hardware_bits():
    payload = {
        "filter_faults": [{"filter_name": "FMAP_3", "row": 4, "col": 4, "bit_position": 0,
                           "fault_type": "stuck_at_0"}],
        "bias_faults": [{"bias_name": "BIAS_VAL_6", "bit_position": 15, "fault_type": "bitflip"}],
    }
    campaign = HardwareFaultCampaign.from_payload(payload)
    assert campaign.filter_faults[0].user_bit == 7
    assert campaign.bias_faults[0].user_bit == 0
    assert campaign.to_payload() == payload


def test_from_payload_missing_register_name():
    payload = {"filter_faults": [{"row": 0, "col": 0, "bit_position": 0, "fault_type": "bitflip"}]}
    with pytest.raises(MissingFieldError) as exc:
        HardwareFaultCampaign.from_payload(payload)
    assert exc.value.field == "filter_name"


def test_empty_campaign_payload_rejected():
    with pytest.raises(ValidationError):
        HardwareFaultCampaign().to_payload()


def test_remove_fault_index_bounds():
    campaign = HardwareFaultCampaign()
    with pytest.raises(RangeError) as exc:
        campaign.remove_filter_fault(0)
    assert exc.value.field == "filter_faults"

    campaign.add_bias_fault("BIAS_VAL_1", bit=0)
    campaign.add_bias_fault("BIAS_VAL_2", bit=0)
    with pytest.raises(RangeError) as exc:
        campaign.remove_bias_fault(-1)          # no wrap-around to the last entry
    assert exc.value.field == "bias_faults"
    assert len(campaign.bias_faults) == 2

    campaign.remove_bias_fault(0)
    assert [e.register for e in campaign.bias_faults] == ["BIAS_VAL_2"]


def test_custom_register_catalog():
    regs = {"W_3x3": HardwareRegister("W_3x3", 8, rows=3, cols=3)}
    campaign = HardwareFaultCampaign(filter_registers=regs, bias_registers={})
    campaign.add_filter_fault("W_3x3", 2, 2, bit=1)
    with pytest.raises(RangeError):
        campaign.add_filter_fault("W_3x3", 3, 0, bit=1)
    campaign.remove_filter_fault(0)
    assert len(campaign) == 0


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
