"""
Status Formatting

Human-readable dump of a system snapshot, one block per air-conditioner.
"""

from .models import AirCon, AirConMode, System, Zone, ZoneError, ZoneState


def format_system(system: System) -> str:
    return "\n".join(format_aircon(ac) for ac in system.aircons)


def format_aircon(ac: AirCon) -> str:
    title = f"{ac.name} ({ac.id})"
    lines = [title, "-" * len(title), ""]

    lines.append(f"Power:    {ac.power.value}")

    mode = f"Mode:     {ac.mode.value}"
    if ac.mode == AirConMode.AUTO and ac.my_auto_mode:
        mode += f" ({ac.my_auto_mode})"
    if ac.my_temp_enabled:
        mode += " [mytemp enabled]"
    if ac.my_auto_enabled:
        mode += " [myauto enabled]"
    if ac.my_sleep_saver_enabled:
        mode += " [mysleep$aver enabled]"
    lines.append(mode)

    fan = f"Fan:      {ac.fan_speed.value}"
    if ac.my_fan_enabled:
        fan += " [myfan enabled]"
    lines.append(fan)

    lines.append(f"Firmware: v{ac.firmware}")
    lines.append("")

    pad = max((len(z.name) for z in ac.zones), default=0)
    lines += [format_zone(ac, z, pad) for z in ac.zones]
    lines.append("")

    return "\n".join(lines)


def format_zone(ac: AirCon, zone: Zone, pad: int) -> str:
    line = f"  {zone.number:2d} {zone.name:<{pad}}"

    if zone.number == ac.my_zone_number:
        line += " (my)"
    elif zone.state == ZoneState.OPEN:
        line += " (on)"
    else:
        line += "     "

    if ac.is_constant_zone(zone):
        line += " (constant)"

    if zone.state == ZoneState.OPEN:
        line += f"  {zone.damper_percentage:3d}%"
    else:
        line += "     -"

    if zone.has_temp_sensor:
        line += "  "
        if zone.state == ZoneState.CLOSED:
            line += f"         {zone.target_temp:2.1f}°"
        elif zone.current_temp == zone.target_temp:
            line += f"{zone.current_temp:2.1f}°         "
        else:
            line += f"{zone.current_temp:2.1f}° -> {zone.target_temp:2.1f}°"

    if zone.error != ZoneError.NONE:
        line += f"  (error: {zone.error.name.lower()})"

    return line.rstrip()
