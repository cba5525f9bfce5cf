"""
Tests for the GRAPHV1 line tokenizer, field tables and record parsers.
"""
import pytest

from ingestion.adapters.tanita_records import (
    DeviceGender,
    ScaleMeasurementRecord,
    ScaleProfile,
    SlotImportResult,
    canonical_date,
    canonical_timestamp,
    device_date,
    parse_measurements,
    parse_profile,
    split_tokens,
    tokenize_line,
)


class TestTokenizeLine:
    """Packed key/value lines"""

    def test_pairs_in_order(self):
        assert tokenize_line('DB,"01/05/1990",GE,1') == {'DB': '01/05/1990', 'GE': '1'}

    def test_quoted_comma_stays_in_one_token(self):
        pairs = tokenize_line('Wk,"80,2",MI,26.1')
        assert pairs['Wk'] == '80,2'
        assert pairs['MI'] == '26.1'

    def test_empty_key_or_value_dropped(self):
        pairs = tokenize_line('DB,,,1,GE,2')
        assert pairs == {'GE': '2'}

    def test_trailing_key_without_value_dropped(self):
        assert tokenize_line('GE,1,Hm') == {'GE': '1'}

    def test_repeated_key_keeps_last_value(self):
        assert tokenize_line('Wk,80.0,Wk,81.0') == {'Wk': '81.0'}

    def test_unbalanced_quote_does_not_swallow_the_line(self):
        pairs = tokenize_line('DT,"01/06/2024,Ti,"08:30:00",Wk,80.2')
        assert pairs == {'DT': '01/06/2024', 'Ti': '08:30:00', 'Wk': '80.2'}

    def test_trailing_stray_quote_stripped(self):
        assert tokenize_line('Hm,175.5",GE,1') == {'Hm': '175.5', 'GE': '1'}

    def test_quote_only_rejoined_with_next_token(self):
        """An open quote far from its close is not a split decimal"""
        pairs = tokenize_line('DB,"01/05/1990,GE,1,Hm,"172,5"')
        assert pairs == {'DB': '01/05/1990', 'GE': '1', 'Hm': '172,5'}

    def test_split_tokens_plain_commas(self):
        assert split_tokens('a,"1,5",b,"x') == ['a', '"1,5"', 'b', '"x']


class TestDeviceDates:
    """DD/MM/YYYY <-> YYYY-MM-DD"""

    @pytest.mark.parametrize('device, iso', [
        ('01/05/1990', '1990-05-01'),
        ('1/2/1990', '1990-02-01'),
        ('29/02/2000', '2000-02-29'),
        ('"31/12/1999"', '1999-12-31'),
    ])
    def test_canonical_date(self, device, iso):
        assert canonical_date(device) == iso

    @pytest.mark.parametrize('device', ['01/05/1990', '29/02/2000', '31/12/1999', '01/01/2024'])
    def test_back_conversion_reconstructs_padded_date(self, device):
        assert device_date(canonical_date(device)) == device

    def test_single_digit_date_back_converts_padded(self):
        assert device_date(canonical_date('1/2/1990')) == '01/02/1990'

    @pytest.mark.parametrize('bad', ['', '1990-05-01', '32/01/1990', '29/02/2001', 'aa/bb/cccc'])
    def test_invalid_dates_raise(self, bad):
        with pytest.raises(ValueError):
            canonical_date(bad)

    def test_canonical_timestamp(self):
        assert canonical_timestamp('01/06/2024 08:30:00') == '2024-06-01 08:30:00'


class TestParseProfile:
    """PROFn.CSV"""

    def test_full_profile(self):
        profile = parse_profile('DB,"01/05/1990",GE,1,Hm,175.5,AL,2,Bt,0,CS,ABC123\n', slot=1)

        assert profile == ScaleProfile(
            slot=1,
            profile_code='ABC123',
            birth_date='01/05/1990',
            gender=1,
            height_cm=175.5,
            athlete_mode=False,
            activity_level=2,
        )
        assert profile.canonical_birth_date == '1990-05-01'
        assert DeviceGender(profile.gender) is DeviceGender.MALE

    def test_athlete_flag(self):
        assert parse_profile('DB,"01/05/1990",Bt,1', slot=2).athlete_mode is True

    def test_comma_decimal_height(self):
        assert parse_profile('Hm,"172,5"', slot=1).height_cm == 172.5

    def test_only_first_non_blank_line_used(self):
        profile = parse_profile('\n\nGE,2,Hm,160\nGE,1,Hm,190\n', slot=3)
        assert profile.gender == 2
        assert profile.height_cm == 160.0

    def test_missing_fields_stay_none(self):
        profile = parse_profile('GE,2', slot=4)
        assert profile.birth_date is None
        assert profile.height_cm is None
        assert profile.profile_code is None
        assert profile.canonical_birth_date is None

    def test_stray_quote_in_birth_date(self):
        profile = parse_profile('DB,"01/05/1990,GE,1,Hm,175.5,AL,2,Bt,0,CS,ABC123', slot=1)

        assert profile.birth_date == '01/05/1990'
        assert profile.canonical_birth_date == '1990-05-01'
        assert profile.gender == 1
        assert profile.height_cm == 175.5
        assert profile.profile_code == 'ABC123'

    def test_keys_are_case_sensitive(self):
        """'ge' and 'hm' are not profile keys"""
        profile = parse_profile('ge,1,hm,175,GE,2', slot=1)
        assert profile.gender == 2
        assert profile.height_cm is None

    @pytest.mark.parametrize('content', ['', '\n  \n', ',,,'])
    def test_nothing_usable_is_none(self, content):
        assert parse_profile(content, slot=1) is None


class TestParseMeasurements:
    """DATAn.CSV"""

    def test_complete_line_yields_one_record(self):
        records = parse_measurements('DT,"01/06/2024",Ti,"08:30:00",Wk,80.2,MI,26.1,FW,18.5', slot=1)

        assert len(records) == 1
        record = records[0]
        assert record.timestamp == '01/06/2024 08:30:00'
        assert record.canonical_timestamp == '2024-06-01 08:30:00'
        assert record.weight_kg == 80.2
        assert record.bmi == 26.1
        assert record.body_fat_percent == 18.5
        assert record.water_percent is None

    @pytest.mark.parametrize('line', [
        'Ti,"08:30:00",Wk,80.2',
        'DT,"01/06/2024",Wk,80.2',
        'DT,"01/06/2024",Ti,"08:30:00",MI,26.1',
        'DT,"01/06/2024",Ti,"08:30:00",Wk,abc',
    ])
    def test_incomplete_line_yields_nothing(self, line):
        assert parse_measurements(line, slot=1) == []

    def test_stray_quote_keeps_the_weigh_in(self):
        records = parse_measurements('DT,"01/06/2024,Ti,"08:30:00",Wk,80.2,MI,26.1', slot=1)

        assert len(records) == 1
        assert records[0].canonical_timestamp == '2024-06-01 08:30:00'
        assert records[0].weight_kg == 80.2
        assert records[0].bmi == 26.1

    def test_required_fields_only(self):
        records = parse_measurements('DT,"01/06/2024",Ti,"08:30:00",Wk,80.2', slot=1)
        assert records == [ScaleMeasurementRecord(timestamp='01/06/2024 08:30:00', weight_kg=80.2)]

    def test_file_order_and_bad_lines_skipped(self):
        content = '\n'.join([
            'DT,"02/06/2024",Ti,"08:00:00",Wk,80.0',
            'garbage',
            '',
            'DT,"01/06/2024",Ti,"08:00:00",Wk,81.0',
        ])
        records = parse_measurements(content, slot=1)
        assert [r.weight_kg for r in records] == [80.0, 81.0]

    def test_segmental_keys_are_case_sensitive(self):
        line = 'DT,"01/06/2024",Ti,"08:30:00",Wk,80.2,Fr,20.1,FR,24.5,mr,3.1,mR,9.8,Fl,20.3,FL,24.7,mT,30.2'
        record = parse_measurements(line, slot=1)[0]

        assert record.fat_arm_right == 20.1
        assert record.fat_leg_right == 24.5
        assert record.fat_arm_left == 20.3
        assert record.fat_leg_left == 24.7
        assert record.muscle_arm_right == 3.1
        assert record.muscle_leg_right == 9.8
        assert record.muscle_trunk == 30.2

    def test_integer_fields(self):
        line = 'DT,"01/06/2024",Ti,"08:30:00",Wk,80.2,IF,9,rA,38,rD,"2100"'
        record = parse_measurements(line, slot=1)[0]
        assert record.visceral_fat_rating == 9
        assert record.metabolic_age == 38
        assert record.daily_calorie_maintenance == 2100

    def test_parsing_is_repeatable(self):
        content = 'DT,"01/06/2024",Ti,"08:30:00",Wk,"80,2",FW,18.5\nDT,"02/06/2024",Ti,"09:00",Wk,79.9'
        assert parse_measurements(content, slot=1) == parse_measurements(content, slot=1)
        assert parse_profile('DB,"01/05/1990",GE,1', 1) == parse_profile('DB,"01/05/1990",GE,1', 1)


class TestSlotImportResult:
    """Payload serialisation used between preview and commit"""

    def test_from_dict_restores_records(self):
        result = SlotImportResult(
            slot=2,
            profile_code='XYZ',
            profile=ScaleProfile(slot=2, birth_date='01/05/1990', gender=2, height_cm=160.0),
            measurements=[ScaleMeasurementRecord(timestamp='01/06/2024 08:30:00', weight_kg=60.5, bmi=23.6)],
        )
        assert SlotImportResult.from_dict(result.to_dict()) == result

    def test_from_dict_ignores_unknown_fields(self):
        data = {
            'slot': 1,
            'profile': {'slot': 1, 'gender': 1, 'legacy': 'x'},
            'measurements': [{'timestamp': '01/06/2024 08:30:00', 'weight_kg': 70.0, 'extra': 1}],
        }
        result = SlotImportResult.from_dict(data)
        assert result.profile_code == ''
        assert result.profile.gender == 1
        assert result.measurements[0].weight_kg == 70.0
